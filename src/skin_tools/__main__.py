import argparse
import json
import logging
from typing import Any, Dict, List, Optional

from skin_tools.api import pil_io
from skin_tools.api.buffer import PixelBuffer
from skin_tools.api.serialization import document_from_dict, layer_to_dict
from skin_tools.composite import composite
from skin_tools.constants import FilterKind, GeneratorType, MaskType, NormalMethod
from skin_tools.exceptions import Error
from skin_tools.filters import apply_filter, combine, generate_normal_map
from skin_tools.filters.normal import NormalMapSettings
from skin_tools.synth import generate, generate_mask
from skin_tools.version import __version__

try:
    from IPython.lib.pretty import pprint
except ImportError:
    from pprint import pprint

logger = logging.getLogger(__name__)


def _value(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return text


def _params(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge ``--params`` JSON and repeated ``--param key=value`` options."""
    params: Dict[str, Any] = {}
    if args.params:
        if args.params.startswith("@"):
            with open(args.params[1:], "r", encoding="utf-8") as f:
                params.update(json.load(f))
        else:
            params.update(json.loads(args.params))
    for item in args.param or ():
        key, _, value = item.partition("=")
        params[key] = _value(value)
    return params


def _read(path: str) -> PixelBuffer:
    with open(path, "rb") as f:
        return pil_io.decode(f.read())


def _write(buffer: PixelBuffer, path: str) -> None:
    with open(path, "wb") as f:
        f.write(pil_io.encode(buffer))


def _add_params(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--params", help="JSON object of parameters, or @file.json to read one"
    )
    parser.add_argument(
        "-p",
        "--param",
        action="append",
        metavar="KEY=VALUE",
        help="Single parameter; the value is parsed as JSON when possible",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="skin-tools command line utility.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate", help="Render a procedural texture to PNG"
    )
    generate_parser.add_argument(
        "type", choices=[item.value for item in GeneratorType], help="Generator type"
    )
    generate_parser.add_argument("output_file", help="Output PNG file")
    generate_parser.add_argument("--width", type=int, default=512)
    generate_parser.add_argument("--height", type=int, default=512)
    _add_params(generate_parser)

    mask_parser = subparsers.add_parser("mask", help="Render a smart mask to PNG")
    mask_parser.add_argument(
        "type", choices=[item.value for item in MaskType], help="Mask type"
    )
    mask_parser.add_argument("output_file", help="Output PNG file")
    mask_parser.add_argument("--width", type=int, default=512)
    mask_parser.add_argument("--height", type=int, default=512)
    mask_parser.add_argument("--source", help="Source image for edge and distance masks")
    _add_params(mask_parser)

    normal_parser = subparsers.add_parser("normal", help="Generate a normal map")
    normal_parser.add_argument("input_file", help="Input image file")
    normal_parser.add_argument("output_file", help="Output PNG file")
    normal_parser.add_argument("--strength", type=float, default=2.0)
    normal_parser.add_argument("--blur-radius", type=float, default=1.0)
    normal_parser.add_argument("--detail-scale", type=float, default=1.0)
    normal_parser.add_argument("--invert", action="store_true")
    normal_parser.add_argument(
        "--method",
        choices=[item.value for item in NormalMethod],
        default=NormalMethod.SOBEL.value,
    )

    filter_parser = subparsers.add_parser("filter", help="Apply an image filter")
    filter_parser.add_argument(
        "kind", choices=[item.value for item in FilterKind], help="Filter kind"
    )
    filter_parser.add_argument("input_file", help="Input image file")
    filter_parser.add_argument("output_file", help="Output PNG file")
    _add_params(filter_parser)

    combine_parser = subparsers.add_parser(
        "combine", help="Pack grayscale images into RGB channels"
    )
    combine_parser.add_argument("output_file", help="Output PNG file")
    combine_parser.add_argument("--red", help="Image for the red channel")
    combine_parser.add_argument("--green", help="Image for the green channel")
    combine_parser.add_argument("--blue", help="Image for the blue channel")
    combine_parser.add_argument("--width", type=int, default=512)
    combine_parser.add_argument("--height", type=int, default=512)

    composite_parser = subparsers.add_parser(
        "composite", help="Flatten an editor JSON document to PNG"
    )
    composite_parser.add_argument("input_file", help="Input JSON document")
    composite_parser.add_argument("output_file", help="Output PNG file")

    info_parser = subparsers.add_parser("info", help="Show the layers of a document")
    info_parser.add_argument("input_file", help="Input JSON document")

    return parser.parse_args(argv)


def _load_document(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return document_from_dict(json.load(f))


def main(argv: Optional[List[str]] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    package_logger = logging.getLogger("skin_tools")
    if args.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)

    try:
        if args.command == "generate":
            buffer = generate(args.type, _params(args), args.width, args.height)
            _write(buffer, args.output_file)

        elif args.command == "mask":
            source = _read(args.source) if args.source else None
            buffer = generate_mask(
                args.type, _params(args), args.width, args.height, source
            )
            _write(buffer, args.output_file)

        elif args.command == "normal":
            settings = NormalMapSettings(
                strength=args.strength,
                blur_radius=args.blur_radius,
                invert=args.invert,
                detail_scale=args.detail_scale,
                method=args.method,
            )
            _write(generate_normal_map(_read(args.input_file), settings), args.output_file)

        elif args.command == "filter":
            buffer = apply_filter(_read(args.input_file), args.kind, _params(args))
            _write(buffer, args.output_file)

        elif args.command == "combine":
            sources = [
                _read(path) if path else None
                for path in (args.red, args.green, args.blue)
            ]
            _write(combine(*sources, args.width, args.height), args.output_file)

        elif args.command == "composite":
            document = _load_document(args.input_file)
            result = composite(
                document.roots,
                document.width,
                document.height,
                lookup=document.table,
                background=document.background,
            )
            for warning in result.warnings:
                logger.warning(str(warning))
            _write(result.buffer, args.output_file)

        elif args.command == "info":
            document = _load_document(args.input_file)
            pprint(
                {
                    "width": document.width,
                    "height": document.height,
                    "layers": [layer_to_dict(layer) for layer in document.layers],
                }
            )
    except (Error, OSError) as e:
        logger.error(str(e))
        return 1

    return None


if __name__ == "__main__":
    main()
