import os
import time

from yip.state import StateDirectory


def _generate(state: StateDirectory, sources: list[str]) -> dict[str, bool]:
    """Tiny generator: upper-case every source into the state directory."""
    written = {}
    for name in sources:
        output = f"gen/{name}.out"
        if not state.should_process(output, name):
            written[name] = False
            continue
        text = (state.project_root / name).read_text(encoding="utf-8")
        written[name] = state.write_file(output, text.upper()).changed
    return written


def _age(path, seconds):
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


def test_incremental_generation_pipeline(tmp_path):
    for name, text in {"a.txt": "alpha", "b.txt": "beta"}.items():
        (tmp_path / name).write_text(text, encoding="utf-8")
        _age(tmp_path / name, 100)
    sources = ["a.txt", "b.txt"]

    with StateDirectory(tmp_path) as state:
        assert _generate(state, sources) == {"a.txt": True, "b.txt": True}
        assert (state.path / "gen" / "a.txt.out").read_text(encoding="utf-8") == "ALPHA"

    with StateDirectory(tmp_path) as state:
        assert _generate(state, sources) == {"a.txt": False, "b.txt": False}

    # Touched but unchanged input: regenerated content is identical, so nothing is written.
    stamp = time.time() + 3600
    os.utime(tmp_path / "a.txt", (stamp, stamp))
    with StateDirectory(tmp_path) as state:
        assert _generate(state, sources) == {"a.txt": False, "b.txt": False}
        assert state.should_process("gen/a.txt.out", "a.txt") is True

    (tmp_path / "b.txt").write_text("gamma", encoding="utf-8")
    os.utime(tmp_path / "b.txt", (stamp, stamp))
    with StateDirectory(tmp_path) as state:
        assert _generate(state, sources)["b.txt"] is True
        assert (state.path / "gen" / "b.txt.out").read_text(encoding="utf-8") == "GAMMA"
        assert state.ledger.count_file_records() == 2


def test_deleted_output_is_regenerated(tmp_path):
    (tmp_path / "a.txt").write_text("alpha", encoding="utf-8")
    _age(tmp_path / "a.txt", 100)

    with StateDirectory(tmp_path) as state:
        _generate(state, ["a.txt"])
        (state.path / "gen" / "a.txt.out").unlink()

        assert _generate(state, ["a.txt"]) == {"a.txt": True}
        assert (state.path / "gen" / "a.txt.out").exists()
