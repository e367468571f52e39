import os
import sys
import warnings
from pathlib import Path

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

# Import libraries for simulation
import tensorflow as tf

if _suppress_messages:
    try:
        tf.get_logger().setLevel("ERROR")
        for handler in tf.get_logger().handlers:
            handler.setLevel("ERROR")
    except AttributeError:
        pass

from mandelzoom import AnimationConfig, FrameRenderer, FrameWriter, build_encoder, prepare_frame_dir
from mandelzoom.config import DEFAULT_X_CENTER, DEFAULT_Y_CENTER
from mandelzoom.log import log, report, set_verbose
from mandelzoom.output import ENCODERS, FRAME_PREFIX, infer_encoder

from argparse import ArgumentParser


def build_parser():
    parser = ArgumentParser(description='Render a zoom animation into the Mandelbrot set.')

    parser.add_argument('--width', type=int,
                        dest='width', help='frame width in pixels',
                        metavar='WIDTH', default=1920)

    parser.add_argument('--height', type=int,
                        dest='height', help='frame height in pixels',
                        metavar='HEIGHT', default=1080)

    parser.add_argument('--fps', type=int,
                        dest='fps', help='frames per second of the animation',
                        metavar='FPS', default=30)

    parser.add_argument('--end-zoom', type=float,
                        dest='end_zoom', help='stop once the zoom factor reaches this value',
                        metavar='END_ZOOM', default=1e6)

    parser.add_argument('--x-center', type=float,
                        dest='x_center', help='real part of the point the zoom converges on',
                        metavar='X_CENTER', default=DEFAULT_X_CENTER)

    parser.add_argument('--y-center', type=float,
                        dest='y_center', help='imaginary part of the point the zoom converges on',
                        metavar='Y_CENTER', default=DEFAULT_Y_CENTER)

    parser.add_argument('--x-range', type=float,
                        dest='x_range', help='starting width of the window in the complex plane; the height follows the aspect ratio',
                        metavar='X_RANGE', default=3.0)

    parser.add_argument('--frame-dir', type=str,
                        dest='frame_dir', help='directory in which frames are written',
                        metavar='FRAME_DIR', default='images')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for frames. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--output', type=str,
                        dest='output', help='path of the encoded animation',
                        metavar='OUTPUT', default='mandelbrot_zoom.mp4')

    parser.add_argument('--encoder', choices=ENCODERS, default=None,
                        help='Backend used to assemble the frames. Defaults to "gif" for .gif outputs and "ffmpeg" otherwise.')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker threads per frame (default: all cores)',
                        metavar='WORKERS', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def resolve_config(opt, parser):
    config = AnimationConfig(
        width=opt.width,
        height=opt.height,
        fps=opt.fps,
        end_zoom=opt.end_zoom,
        x_center=opt.x_center,
        y_center=opt.y_center,
        x_range=opt.x_range,
    )
    try:
        config.validate()
    except ValueError as exc:
        parser.error(str(exc))
    if opt.workers is not None and opt.workers <= 0:
        parser.error("--workers must be positive.")
    return config


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)
    config = resolve_config(opt, parser)

    set_verbose(opt.verbose)
    log("TensorFlow version: %s" % tf.__version__)

    image_format = (opt.format or "png").lower().lstrip(".") or "png"
    frame_dir = Path(opt.frame_dir).expanduser().resolve()
    output_path = Path(opt.output).expanduser().resolve()
    encoder = build_encoder(opt.encoder or infer_encoder(output_path), output_path)

    prepare_frame_dir(frame_dir, FRAME_PREFIX, image_format)

    writer = FrameWriter(frame_dir, image_format=image_format)
    renderer = FrameRenderer(config, writer, workers=opt.workers)
    total_frames = renderer.scheduler.planned_frames()

    def progress(plan, persisted):
        print("Frame {0} out of {1} | zoom = {2:.6g}".format(plan.index + 1, total_frames, plan.zoom), end='\r', flush=True)

    try:
        stats = renderer.run(on_frame=progress)
    except KeyboardInterrupt:
        print()
        report("Interrupted, %d frames written to %s" % (len(writer.paths), frame_dir))
        return 130

    if encoder is not None:
        print("\nEncoding video...")
        if encoder.encode(writer.paths, config.fps):
            log("Wrote %s" % encoder.output)
    else:
        print()

    print()
    print(stats.format_report())
    print()
    print("Done.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
