# Enforce a cyclomatic complexity ceiling on the modules that carry most of the branching.
# Skipped when radon is not installed.
import pathlib
import pytest

cc_visit = pytest.importorskip("radon.complexity").cc_visit

MODULES = [
    'report/renderer.py',
    'scoring/aggregator.py',
    'scoring/filters.py',
    'heatmap.py',
]


@pytest.mark.parametrize('relpath', MODULES)
def test_complexity_threshold(relpath):
    """Fail if any function in the module exceeds the complexity threshold."""
    repo_root = pathlib.Path(__file__).resolve().parents[1]
    path = repo_root / relpath
    assert path.exists(), f"{relpath} not found at {path}"

    blocks = cc_visit(path.read_text(encoding='utf-8'))

    # cyclomatic complexity ceiling
    THRESHOLD = 12

    offenders = [(b.name, b.complexity, b.lineno) for b in blocks if b.complexity > THRESHOLD]
    if offenders:
        offenders_str = '\n'.join([f"{name} (complexity={comp}) at line {lineno}" for name, comp, lineno in offenders])
        pytest.fail(f"Complexity threshold exceeded in {relpath} (threshold={THRESHOLD}):\n{offenders_str}")
