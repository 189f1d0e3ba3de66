import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")

# Imports for visualization
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont
import imageio

from mandelbrot_explorer import (
    InvalidViewSpec,
    RenderResult,
    ViewSpec,
    apply_move,
    apply_moves,
    colormap_table,
    format_status,
    parse_moves,
    render,
)
from mandelbrot_explorer.navigation import MOVES

from argparse import ArgumentParser

VALID_MODES = ("gif", "image", "raw")


def select_device() -> str:
    """Place the computation on the first GPU when one is visible."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        # Memory growth must be set before the GPU is initialized.
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass(frozen=True)
class OutputConfig:
    modes: tuple[str, ...]
    image_path: Path | None
    gif_path: Path | None
    raw_path: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render views of the Mandelbrot set.')

    parser.add_argument('--center-x', type=float,
                        dest='center_x', help='real part of the point at the image center',
                        metavar='CENTER_X', default=-0.5)

    parser.add_argument('--center-y', type=float,
                        dest='center_y', help='imaginary part of the point at the image center',
                        metavar='CENTER_Y', default=0.0)

    parser.add_argument('--zoom', type=float,
                        dest='zoom', help='magnification; 1 shows a window 3.5 units wide',
                        metavar='ZOOM', default=1.0)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iteration budget per pixel',
                        metavar='MAX_ITERATIONS', default=200)

    parser.add_argument('--width', type=int,
                        dest='width', help='output width in pixels',
                        metavar='WIDTH', default=700)

    parser.add_argument('--height', type=int,
                        dest='height', help='output height in pixels',
                        metavar='HEIGHT', default=700)

    parser.add_argument('--moves', type=str, default=None,
                        help='Comma separated moves applied before the first frame. Choices: %s.' % ', '.join(sorted(MOVES)))

    parser.add_argument('--frames', type=int,
                        dest='frames', help='number of frames to render',
                        metavar='FRAMES', default=1)

    parser.add_argument('--step', type=str, default='in',
                        help='Move applied between consecutive frames (default: "in").')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: %s.' % ', '.join(VALID_MODES))

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination for a single output mode, or container directory when several are requested.')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for image outputs. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap used instead of the classic blue-green-red ramp',
                        metavar='COLORMAP', default=None)

    parser.add_argument('--show-status', dest='show_status', action='store_true',
                        help='overlay center, zoom, iterations and render time on image and gif outputs')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def _single_output_path(output_arg: str, suffix: str, parser: ArgumentParser) -> Path:
    output_path = Path(output_arg).expanduser()
    if str(output_arg).endswith(tuple(filter(None, {os.sep, os.altsep}))):
        parser.error("--output must be a file path when a single mode is selected.")
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory, when a single mode is active.")
    if output_path.suffix:
        if output_path.suffix.lower() != suffix.lower():
            parser.error(f"--output extension {output_path.suffix} does not match {suffix}.")
    else:
        output_path = output_path.with_suffix(suffix)
    return output_path.resolve()


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = []
    for mode in opt.modes or ["image"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(VALID_MODES)}.")
        if mode not in modes:
            modes.append(mode)

    image_format = (getattr(opt, "format", "png") or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"

    suffixes = {"image": f".{image_format}", "gif": ".gif", "raw": ".bgra"}
    defaults = {"image": f"frame_final.{image_format}", "gif": "movie.gif", "raw": "frame.bgra"}
    paths: dict[str, Path] = {}

    output_arg = getattr(opt, "output", None)
    if len(modes) == 1:
        mode = modes[0]
        if output_arg:
            paths[mode] = _single_output_path(output_arg, suffixes[mode], parser)
        else:
            paths[mode] = Path(defaults[mode]).resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("--output must be a directory when several modes are active.")
        for mode in modes:
            paths[mode] = (base_dir / defaults[mode]).resolve()

    return OutputConfig(
        modes=tuple(modes),
        image_path=paths.get("image"),
        gif_path=paths.get("gif"),
        raw_path=paths.get("raw"),
        image_format=image_format,
    )


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def to_image(result: RenderResult) -> PIL.Image.Image:
    """Wrap the BGRA buffer of ``result`` in an RGBA Pillow image."""

    size = (result.view.width, result.view.height)
    return PIL.Image.frombuffer("RGBA", size, result.pixels, "raw", "BGRA", 0, 1).copy()


def write_single_image(image: PIL.Image.Image, output_path: Path, image_format: str) -> None:
    """Write a single image to ``output_path`` using the provided format."""

    pil_format = _pil_format_name(image_format)
    if pil_format in {"JPEG", "BMP"} and image.mode == "RGBA":
        image = image.convert("RGB")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(str(output_path), format=pil_format)


def raw_frame_path(raw_path: Path, index: int, total_frames: int) -> Path:
    if total_frames <= 1:
        return raw_path
    digits = max(3, len(str(total_frames - 1)))
    return raw_path.with_name(f"{raw_path.stem}{index:0{digits}d}{raw_path.suffix}")


def write_raw(pixels: bytes, path: Path) -> Path:
    """Dump the BGRA buffer unchanged."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(pixels)
    return path


def write_gif(writer: Any, frame_array: np.ndarray) -> None:
    """Append ``frame_array`` to an active GIF writer."""

    writer.append_data(frame_array)


_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
)


def _load_annotation_font(image: PIL.Image.Image) -> PIL.ImageFont.ImageFont:
    target_size = max(10, int(round(max(min(image.size), 1) * 0.028)))
    for path in _FONT_CANDIDATES:
        font_path = Path(path)
        if font_path.exists():
            try:
                return PIL.ImageFont.truetype(str(font_path), target_size)
            except OSError:
                continue
    return PIL.ImageFont.load_default()


def _create_vertical_gradient(
    size: tuple[int, int],
    top_color: tuple[int, int, int, int],
    bottom_color: tuple[int, int, int, int],
) -> PIL.Image.Image:
    width, height = size
    gradient = PIL.Image.new("RGBA", (max(width, 1), max(height, 1)))
    if height <= 1:
        gradient.paste(top_color, [0, 0, gradient.width, gradient.height])
        return gradient

    for y in range(height):
        ratio = y / (height - 1)
        color = tuple(
            int(round(top_color[channel] + (bottom_color[channel] - top_color[channel]) * ratio))
            for channel in range(4)
        )
        gradient.paste(color, [0, y, width, y + 1])
    return gradient


def _draw_text_with_shadow(
    draw: PIL.ImageDraw.ImageDraw,
    position: tuple[float, float],
    text: str,
    font: PIL.ImageFont.ImageFont,
    fill: tuple[int, int, int, int],
    *,
    shadow_fill: tuple[int, int, int, int] = (0, 0, 0, 160),
    shadow_offset: tuple[int, int] = (1, 1),
) -> None:
    draw.text((position[0] + shadow_offset[0], position[1] + shadow_offset[1]), text, font=font, fill=shadow_fill)
    draw.text(position, text, font=font, fill=fill)


def annotate_with_status(image: PIL.Image.Image, status: str) -> PIL.Image.Image:
    """Overlay ``status`` on a translucent band along the bottom edge."""

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    draw = PIL.ImageDraw.Draw(image, "RGBA")
    font = _load_annotation_font(image)
    bbox = draw.textbbox((0, 0), status, font=font)
    text_height = int(round(bbox[3] - bbox[1]))
    padding = max(4, text_height // 2)

    band_height = min(image.height, text_height + padding * 2)
    band = _create_vertical_gradient(
        (image.width, band_height),
        (18, 22, 40, 150),
        (10, 12, 24, 210),
    )
    band_top = image.height - band_height
    image.paste(band, (0, band_top), band)

    _draw_text_with_shadow(
        draw,
        (padding, band_top + padding - bbox[1]),
        status,
        font,
        (240, 244, 255, 255),
    )
    return image


@dataclass
class OutputWriters:
    config: OutputConfig
    total_frames: int

    def __post_init__(self) -> None:
        self._gif_writer = None
        if self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            self._gif_writer = imageio.get_writer(str(self.config.gif_path), mode='I', duration=0.1, loop=0)

    def needs_image(self, frame_index: int) -> bool:
        if self._gif_writer is not None:
            return True
        return self.config.image_path is not None and frame_index == self.total_frames - 1

    def write(self, frame_index: int, result: RenderResult, image: PIL.Image.Image | None) -> None:
        if self.config.raw_path is not None:
            path = write_raw(result.pixels, raw_frame_path(self.config.raw_path, frame_index, self.total_frames))
            log("raw frame written to %s" % path)
        if image is None:
            return
        if self._gif_writer is not None:
            write_gif(self._gif_writer, np.asarray(image.convert("RGB")))
        if self.config.image_path is not None and frame_index == self.total_frames - 1:
            write_single_image(image, self.config.image_path, self.config.image_format)
            log("image written to %s" % self.config.image_path)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None
            log("gif written to %s" % self.config.gif_path)


def build_palette(colormap: str | None, max_iterations: int):
    if colormap is None:
        return None
    return colormap_table(colormap, max_iterations)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    log("TensorFlow version: %s" % tf.__version__)

    if opt.frames < 1:
        parser.error("--frames must be at least 1.")

    try:
        moves = parse_moves(opt.moves)
        step = parse_moves(opt.step)
    except ValueError as exc:
        parser.error(str(exc))
    if len(step) != 1:
        parser.error("--step must name exactly one move.")

    output_config = resolve_output_config(opt, parser)

    view = ViewSpec(
        center_x=opt.center_x,
        center_y=opt.center_y,
        zoom=opt.zoom,
        max_iterations=opt.max_iterations,
        width=opt.width,
        height=opt.height,
    )
    try:
        view.validate()
        view = apply_moves(view, moves)
        view.validate()
        palette = build_palette(opt.colormap, view.max_iterations)
    except ValueError as exc:
        parser.error(str(exc))

    device = select_device()
    writers = OutputWriters(output_config, total_frames=opt.frames)

    try:
        for i in range(opt.frames):
            if i > 0:
                previous_iterations = view.max_iterations
                view = apply_move(view, step[0])
                if view.max_iterations != previous_iterations:
                    palette = build_palette(opt.colormap, view.max_iterations)
            try:
                result = render(view, palette=palette, device=device)
            except InvalidViewSpec as exc:
                parser.error(str(exc))

            status = format_status(view, result.elapsed_ms)
            if opt.frames > 1:
                print("frame {0} out of {1}: {2}".format(i + 1, opt.frames, status))
            else:
                print(status)

            image = None
            if writers.needs_image(i):
                image = to_image(result)
                if opt.show_status:
                    image = annotate_with_status(image, status)
            writers.write(i, result, image)
    finally:
        writers.close()


if __name__ == '__main__':
    main()
