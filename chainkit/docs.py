"""`chainkit` invariants and boundaries.

1) `chainkit` must not import `sitechain.*`.
2) `chainkit` provides the artifact record, the step contract, the step registry and
   the chain runner. It performs no file I/O and knows nothing about file types.
3) A failure is enriched into a `StepError` exactly once, at the innermost step frame.
   Anything that is already a `PipelineError` passes through later frames untouched.
4) Registries are immutable; `StepRegistry.merged` returns a new snapshot.
"""
