from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["--width", "160", "--height", "120"]


@dataclass
class Expected:
    path: Path


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "explore.py", *self.args]


def _single(name: str, filename: str, *extra: str) -> Example:
    target = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*BASE_ARGS, *extra, "--output", str(target)],
        expected=[Expected(target)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _single("default", "classic.png"),
    _single("center-x", "seahorse-valley.png", "--center-x", "-0.745", "--zoom", "20"),
    _single("center-y", "upper-plane.png", "--center-y", "0.35"),
    _single("zoom", "magnified.png", "--center-x", "-1.25", "--zoom", "8"),
    _single("max-iterations", "high-iterations.png", "--max-iterations", "1000"),
    _single("width", "wide.png", "--width", "320"),
    _single("height", "tall.png", "--height", "240"),
    _single("moves", "navigated.png", "--moves", "in,in,left,up,more"),
    _single("colormap", "twilight.png", "--colormap", "twilight_shifted"),
    _single("format", "classic.jpg", "--format", "jpg"),
    _single("show-status", "annotated.png", "--show-status"),
    _single("verbose", "diagnostic.png", "--verbose"),
    _single("gif", "zoom-in.gif", "--mode", "gif", "--frames", "6", "--step", "in"),
    _single("raw", "frame.bgra", "--mode", "raw"),
    Example(
        name="modes",
        args=[
            *BASE_ARGS,
            "--mode",
            "image",
            "--mode",
            "gif",
            "--mode",
            "raw",
            "--frames",
            "3",
            "--step",
            "more",
            "--output",
            str(EXAMPLES_ROOT / "modes"),
        ],
        expected=[
            Expected(EXAMPLES_ROOT / "modes" / "frame_final.png"),
            Expected(EXAMPLES_ROOT / "modes" / "movie.gif"),
            Expected(EXAMPLES_ROOT / "modes" / "frame002.bgra"),
        ],
        clean=[EXAMPLES_ROOT / "modes"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if not expected.path.is_file():
            raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
