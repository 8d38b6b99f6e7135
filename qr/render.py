"""
Render provisioning URIs as scannable QR codes.

Uses the ``qrcode`` package for symbol encoding and emits a single-path SVG
that can be embedded directly into an HTML page.
"""

import html
import logging

import qrcode
from qrcode.exceptions import DataOverflowError

from core.errors import QrEncodingCapacityExceeded

logger = logging.getLogger(__name__)

DEFAULT_SIZE_MM = 50
QUIET_ZONE = 4


def qr_matrix(data: str) -> list:
    """
    Encode ``data`` and return the module matrix, quiet zone included.

    Raises:
        QrEncodingCapacityExceeded: If ``data`` does not fit a version 40 symbol.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        border=QUIET_ZONE,
    )
    qr.add_data(data)
    try:
        qr.make(fit=True)
    except DataOverflowError as exc:
        raise QrEncodingCapacityExceeded(
            f"Payload of {len(data)} characters exceeds QR capacity."
        ) from exc
    logger.debug("Encoded %d characters as QR version %d", len(data), qr.version)
    return qr.get_matrix()


def _path_data(matrix: list) -> str:
    # One rectangle per horizontal run of dark modules.
    parts = []
    for y, row in enumerate(matrix):
        x = 0
        n = len(row)
        while x < n:
            if not row[x]:
                x += 1
                continue
            start = x
            while x < n and row[x]:
                x += 1
            run = x - start
            parts.append(f"M{start},{y}h{run}v1h-{run}z")
    return "".join(parts)


def uri_to_svg(uri: str, size_mm: int = DEFAULT_SIZE_MM) -> str:
    """
    Render ``uri`` as an SVG element.

    The viewBox is one unit per module; the viewport is ``size_mm`` square.

    Raises:
        QrEncodingCapacityExceeded: If the URI is too long for a QR code.
    """
    matrix = qr_matrix(uri)
    n = len(matrix)
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" '
        f'width="{size_mm}mm" height="{size_mm}mm" '
        f'viewBox="0 0 {n} {n}" shape-rendering="crispEdges">'
        f'<rect width="{n}" height="{n}" fill="#fff"/>'
        f'<path fill="#000" d="{_path_data(matrix)}"/>'
        f"</svg>"
    )


def uri_to_html(uri: str, title: str = "TOTP QR code") -> str:
    """Wrap the QR code for ``uri`` in a minimal standalone HTML page."""
    return (
        "<html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        f"<body><h1>{html.escape(title)}</h1>{uri_to_svg(uri)}</body></html>\n"
    )
