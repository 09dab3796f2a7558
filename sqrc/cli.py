"""sqrc CLI: render styled QR codes and check that they scan."""

import argparse
import sys

from PIL import Image
from qrcode.exceptions import DataOverflowError

from sqrc.errors import ConfigError, LogoLoadError
from sqrc.logging import audit, get_logger, setup_logging
from sqrc.modules import STYLE_ALIASES

log = get_logger("cli")


def _parse_radius(s: str):
    """``8`` or ``8,8,0,8`` (top-left, top-right, bottom-right, bottom-left)."""
    parts = [float(p) for p in s.split(",")]
    if len(parts) == 1:
        return parts[0]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"expected 1 or 4 radii, got {len(parts)}")
    return parts


def _build_options(args) -> dict:
    """Merge ``--config`` JSON with explicit flags; flags win."""
    from sqrc.options import load_options

    opts: dict = {}
    if args.config:
        base = load_options(args.config)
        opts = {
            k: getattr(base, k)
            for k in base.__dataclass_fields__
        }

    flags = {
        "size": args.size,
        "quiet_zone": args.quiet_zone,
        "ecc": args.ecc,
        "version": args.version,
        "module_style": args.style,
        "module_scale": args.scale,
        "background": args.background,
    }
    opts.update({k: v for k, v in flags.items() if v is not None})

    if args.gradient_from or args.gradient_to:
        opts["foreground"] = {
            "from": args.gradient_from,
            "to": args.gradient_to,
            "type": args.gradient_type,
            "rotation": args.gradient_rotation,
        }
    elif args.color:
        opts["foreground"] = args.color

    if args.eye_radius is not None or args.eye_color:
        eyes = {}
        if args.eye_radius is not None:
            eyes["radius"] = args.eye_radius
        if args.eye_color:
            eyes["color"] = args.eye_color
        opts["eyes"] = eyes

    if args.logo:
        opts["logo"] = {
            "source": args.logo,
            "width": args.logo_width,
            "height": args.logo_height,
            "padding": args.logo_padding,
            "opacity": args.logo_opacity,
            "style": args.logo_style,
            "empty_background": args.logo_clear,
        }
    return opts


def cmd_render(args):
    """Render a styled QR code to PNG."""
    from sqrc.options import RenderOptions
    from sqrc.renderer import QRCode

    try:
        qr = QRCode(args.payload, RenderOptions(**_build_options(args)))
        output = qr.save(args.output)
    except (ConfigError, LogoLoadError, DataOverflowError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    n = qr.matrix.module_count
    print(f"Rendered: {output} ({qr.options.size}x{qr.options.size})")
    print(f"  Version: {qr.matrix.version}, ECC: {qr.options.ecc}, Modules: {n}x{n}")
    print(f"  Style: {qr.options.module_style.value}, Cell: {qr.cell_size:.2f}px")

    if args.verify:
        from sqrc.verify import scan

        with Image.open(output) as img:
            result = scan(img, expected_data=args.payload)
        status = "PASS" if result.success else "FAIL"
        print(f"  Scan: {status} | {result.decode_time_ms:.1f}ms | {result.decoded_data or result.error}")
        if not result.success:
            sys.exit(1)


def cmd_verify(args):
    """Decode a QR image and report whether it scans."""
    from sqrc.verify import scan

    try:
        with Image.open(args.image) as img:
            result = scan(img, expected_data=args.expected)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)
    status = "PASS" if result.success else "FAIL"
    print(f"  [{result.decoder:12s}] {status} | {result.decode_time_ms:6.1f}ms | {result.decoded_data or result.error}")
    sys.exit(0 if result.success else 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sqrc", description="Styled QR code renderer")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_ren = subparsers.add_parser("render", help="Render a styled QR code")
    p_ren.add_argument("payload", help="Text or URL to encode")
    p_ren.add_argument("-o", "--output", default="output/qr.png", help="Output PNG path")
    p_ren.add_argument("--config", default=None, help="JSON file with render options")
    p_ren.add_argument("-s", "--size", type=int, default=None, help="Image side in pixels (default 150)")
    p_ren.add_argument("-q", "--quiet-zone", type=float, default=None, help="Margin in pixels (default 10)")
    p_ren.add_argument("-e", "--ecc", default=None, choices=["L", "M", "Q", "H"], help="Error correction level")
    p_ren.add_argument("-v", "--version", type=int, default=None, help="QR version 1-40 (auto if omitted)")
    p_ren.add_argument("--style", default=None, choices=sorted(STYLE_ALIASES), help="Module style")
    p_ren.add_argument("--scale", type=float, default=None, help="Module scale for dots/square, (0, 1]")
    p_ren.add_argument("--color", default=None, help="Foreground colour (e.g. '#1a1a1a')")
    p_ren.add_argument("--background", default=None, help="Background colour")
    p_ren.add_argument("--gradient-from", default=None, help="Gradient start colour")
    p_ren.add_argument("--gradient-to", default=None, help="Gradient end colour")
    p_ren.add_argument("--gradient-type", default="linear", choices=["linear", "radial"])
    p_ren.add_argument("--gradient-rotation", type=float, default=0.0, help="Linear gradient rotation (radians)")
    p_ren.add_argument("--eye-radius", type=_parse_radius, default=None, help="Eye corner radius: r or tl,tr,br,bl")
    p_ren.add_argument("--eye-color", default=None, help="Eye colour")
    p_ren.add_argument("--logo", default=None, help="Logo path or http(s) URL")
    p_ren.add_argument("--logo-width", type=float, default=None, help="Logo width in pixels")
    p_ren.add_argument("--logo-height", type=float, default=None, help="Logo height in pixels")
    p_ren.add_argument("--logo-padding", type=float, default=0.0, help="Background padding around the logo")
    p_ren.add_argument("--logo-opacity", type=float, default=1.0, help="Logo opacity [0, 1]")
    p_ren.add_argument("--logo-style", default="square", choices=["square", "circle"])
    p_ren.add_argument("--logo-clear", action="store_true", help="Skip modules under the logo")
    p_ren.add_argument("--verify", action="store_true", help="Scan the result with OpenCV")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "INFO"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "verify": cmd_verify,
    }
    commands[args.command](args)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
