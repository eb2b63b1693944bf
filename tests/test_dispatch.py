import logging
import re

import pytest

from chainkit import Step, StepContractViolation, StepRegistry
from sitechain.framework.defaults import DEFAULT_CHAINS, default_table
from sitechain.framework.dispatch import PROFILER_STEP_ID, ChainEntry, ChainTable
from sitechain.steps.registry import get_step_registry


def test_styles_css_resolves_to_builtin_chain():
    assert default_table().resolve("styles.css") == (
        "Profiler",
        "AddContent",
        "EEx",
        "CSSMinify",
        "OutputPath",
        "URLFingerprinting",
        "AddLayout",
        "Save",
    )


@pytest.mark.parametrize(
    "path, expected",
    [
        ("posts/hello.md", ("AddContent", "Frontmatter", "Pagination", "EEx", "Markdown", "OutputPath", "AddLayout", "Save")),
        ("index.eex", ("AddContent", "Frontmatter", "EEx", "OutputPath", "AddLayout", "Save")),
        ("img/cat.jpg", ("OutputPath", "Image")),
        ("img/cat.png", ("OutputPath", "Image")),
        ("app.js", ("AddContent", "EEx", "JS", "OutputPath", "URLFingerprinting", "AddLayout", "Save")),
        ("about.slime", ("AddContent", "Frontmatter", "Pagination", "Slime", "OutputPath", "AddLayout", "Save")),
    ],
)
def test_builtin_chains_are_prefixed_with_profiler(path, expected):
    assert default_table().resolve(path) == (PROFILER_STEP_ID, *expected)


def test_builtin_table_order():
    assert [entry.matcher for entry in DEFAULT_CHAINS] == [
        ".css",
        ".eex",
        ".jpg",
        ".js",
        ".md",
        ".png",
        ".slim",
        ".slime",
    ]


def test_user_entry_overrides_builtin_for_same_extension():
    table = ChainTable.build({".css": ["AddContent", "Sass", "Save"]}, DEFAULT_CHAINS)
    assert table.resolve("styles.css") == ("Profiler", "AddContent", "Sass", "Save")
    assert table.resolve("posts/a.md")[1:3] == ("AddContent", "Frontmatter")


def test_earlier_broad_pattern_shadows_later_specific_entry():
    table = ChainTable.build(
        [
            (re.compile(r"^assets/"), ("Copy",)),
            (".css", ("AddContent", "CSSMinify")),
        ],
        DEFAULT_CHAINS,
    )
    assert table.resolve("assets/site.css") == ("Profiler", "Copy")
    assert table.resolve("site.css") == ("Profiler", "AddContent", "CSSMinify")


def test_patterns_search_anywhere_in_path():
    table = ChainTable.build([(re.compile(r"\.svg$"), ("Copy",))])
    assert table.resolve("icons/logo.svg") == ("Profiler", "Copy")
    assert table.find("icons/logo.svgz") is None


def test_extension_matching_is_exact():
    table = default_table()
    assert table.find("archive.tar.css").matcher == ".css"
    assert table.find("STYLES.CSS") is None
    assert table.find(".md") is None


def test_unmatched_path_warns_once_and_returns_empty_chain(caplog):
    with caplog.at_level(logging.WARNING):
        chain = default_table().resolve("README")

    assert chain == ()
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].getMessage() == "No preprocessing chain matches README"


def test_chain_entry_validation():
    with pytest.raises(ValueError, match=r"look like '\.ext'"):
        ChainEntry("css", ("Save",))
    with pytest.raises(ValueError, match=r"Duplicate step id in chain for \.css: Save"):
        ChainEntry(".css", ("Save", "Save"))
    with pytest.raises(TypeError, match=r"must be a list of step ids"):
        ChainEntry(".css", "Save")
    with pytest.raises(TypeError, match=r"compiled pattern"):
        ChainEntry(42, ("Save",))


def test_validate_reports_unregistered_steps():
    with pytest.raises(StepContractViolation, match=r"AddContent \(used by \.css, \.eex, \.js, \.md"):
        default_table().validate(get_step_registry())


def test_validate_passes_when_every_step_is_registered():
    table = default_table()
    steps = [type(name, (Step,), {})() for name in table.step_ids() if name != PROFILER_STEP_ID]
    registry = get_step_registry(steps)

    table.validate(registry)
    assert set(table.step_ids()) <= set(registry.available())


def test_validate_requires_profiler():
    class Save(Step):
        pass

    table = ChainTable.build({".txt": ["Save"]})
    with pytest.raises(StepContractViolation, match=r"Profiler"):
        table.validate(StepRegistry.from_steps([Save()]))


def test_describe_lists_entries_in_precedence_order():
    table = ChainTable.build([(re.compile(r"^drafts/"), ("Skip",))], DEFAULT_CHAINS)
    rows = table.describe()
    assert rows[0] == {"matcher": "/^drafts//", "kind": "pattern", "chain": ["Profiler", "Skip"]}
    assert rows[1]["matcher"] == ".css"
