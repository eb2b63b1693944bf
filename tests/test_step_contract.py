import pytest

from chainkit import (
    Artifact,
    ChainRunner,
    Continue,
    Halt,
    NullStepRecorder,
    Step,
    StepContractViolation,
    StepError,
    StepRegistry,
)


class FnStep(Step):
    def __init__(self, step_id, transform=None, after=None, calls=None):
        self.step_id = step_id
        self._transform = transform
        self._after = after
        self._calls = calls if calls is not None else []

    def transform(self, artifact):
        self._calls.append(f"{self.step_id}.transform")
        if self._transform is None:
            return artifact
        return self._transform(artifact)

    def after_transform(self, artifact):
        self._calls.append(f"{self.step_id}.after")
        if self._after is None:
            return artifact
        return self._after(artifact)


def _runner(*steps: Step) -> ChainRunner:
    return ChainRunner(StepRegistry.from_steps(steps), recorder=NullStepRecorder())


def _tag(name):
    def _apply(artifact):
        trail = list(artifact.metadata.get("trail", []))
        trail.append(name)
        return artifact.with_metadata(trail=trail)

    return _apply


def test_default_step_is_identity_continue():
    class Plain(Step):
        pass

    art = Artifact("x.md", content="# hi")
    assert Plain.step_id == "Plain"
    assert Plain().run(art) == [art]


def test_explicit_and_implicit_continue_with_post_hooks_in_reverse_order():
    calls: list[str] = []
    art = Artifact("x.md", content="raw")
    a = FnStep(
        "A",
        transform=lambda x: Continue(x.with_content("a")),
        after=_tag("A.after"),
        calls=calls,
    )
    b = FnStep(
        "B",
        transform=lambda x: x.with_content(x.content + "b"),
        after=_tag("B.after"),
        calls=calls,
    )

    out = _runner(a, b).execute(art, ("A", "B"))

    assert len(out) == 1
    assert out[0].content == "ab"
    assert out[0].metadata["trail"] == ["B.after", "A.after"]
    assert calls == ["A.transform", "B.transform", "B.after", "A.after"]
    assert out[0].input_path == "x.md"


def test_halt_skips_remaining_chain_but_runs_own_post_hook():
    calls: list[str] = []
    halted = Artifact("x.md", content="stop")
    a = FnStep("A", transform=lambda x: Halt(halted), after=_tag("A.after"), calls=calls)
    b = FnStep("B", calls=calls)

    out = _runner(a, b).execute(Artifact("x.md"), ("A", "B"))

    assert [o.content for o in out] == ["stop"]
    assert out[0].metadata["trail"] == ["A.after"]
    assert calls == ["A.transform", "A.after"]


def test_halt_result_does_not_depend_on_the_tail():
    a = FnStep("A", transform=lambda x: Halt(x.with_content("done")))
    runner = _runner(a, FnStep("B"), FnStep("C"))
    art = Artifact("x.md")

    short = runner.execute(art, ("A",))
    long = runner.execute(art, ("A", "B", "C"))
    # Unregistered ids in the tail are never looked up after a halt.
    unknown_tail = runner.execute(art, ("A", "Missing", "AlsoMissing"))

    assert short == long == unknown_tail


def test_fan_out_runs_each_branch_through_the_tail_in_order():
    def _expand(art):
        return [art.with_metadata(page=i) for i in (1, 2, 3)]

    def _split(art):
        return Continue([art.with_metadata(variant=v) for v in ("a", "b")])

    runner = _runner(FnStep("Paginate", transform=_expand), FnStep("Split", transform=_split), FnStep("Save"))
    out = runner.execute(Artifact("posts.md"), ("Paginate", "Split", "Save"))

    assert [(o.metadata["page"], o.metadata["variant"]) for o in out] == [
        (1, "a"),
        (1, "b"),
        (2, "a"),
        (2, "b"),
        (3, "a"),
        (3, "b"),
    ]
    assert {o.input_path for o in out} == {"posts.md"}


def test_fan_out_halt_applies_to_every_yielded_artifact():
    calls: list[str] = []
    a = FnStep("A", transform=lambda x: Halt([x, x.with_content("two")]), calls=calls)
    out = _runner(a, FnStep("B", calls=calls)).execute(Artifact("x.md"), ("A", "B"))

    assert len(out) == 2
    assert "B.transform" not in calls
    assert calls.count("A.after") == 2


def test_post_hook_runs_for_every_leaf_below_the_step():
    calls: list[str] = []
    a = FnStep("A", calls=calls)
    b = FnStep("B", transform=lambda x: [x, x, x], calls=calls)

    out = _runner(a, b).execute(Artifact("x.md"), ("A", "B"))

    assert len(out) == 3
    assert calls.count("B.after") == 3
    assert calls.count("A.after") == 3


def test_step_cannot_change_input_path():
    a = FnStep("A", transform=lambda x: Artifact("elsewhere.md", content=x.content))

    with pytest.raises(StepContractViolation, match=r"input_path changed") as excinfo:
        _runner(a).execute(Artifact("x.md"), ("A",))

    assert excinfo.value.step_id == "A"


def test_post_hook_cannot_change_input_path():
    a = FnStep("A")
    b = FnStep("B", after=lambda x: Artifact("elsewhere.html", content=x.content))

    with pytest.raises(StepContractViolation, match=r"after_transform changed input_path") as excinfo:
        _runner(a, b).execute(Artifact("x.md"), ("A", "B"))

    assert excinfo.value.step_id == "B"
    assert not isinstance(excinfo.value, StepError)


def test_invalid_transform_result_is_enriched():
    a = FnStep("A", transform=lambda x: "not an artifact")

    with pytest.raises(StepError) as excinfo:
        _runner(a).execute(Artifact("x.md"), ("A",))

    assert excinfo.value.kind == "TypeError"
    assert excinfo.value.step_id == "A"


def test_after_transform_must_return_an_artifact():
    a = FnStep("A", after=lambda x: None)

    with pytest.raises(StepError, match=r"after_transform returned non-Artifact"):
        _runner(a).execute(Artifact("x.md"), ("A",))


def test_run_without_runner_needs_empty_remaining_chain():
    with pytest.raises(TypeError, match=r"needs a runner"):
        FnStep("A").run(Artifact("x.md"), ("B",))


def test_outcome_wrappers_reject_non_artifacts():
    with pytest.raises(TypeError, match=r"Halt value\[1\] must be an Artifact"):
        Halt([Artifact("x.md"), "nope"]).artifacts()
