"""
Image processing: filters, normal map synthesis and channel packing.

Example::

    from skin_tools.filters import apply_filter, generate_normal_map

    embossed = apply_filter(buffer, 'emboss', strength=2)
    normals = generate_normal_map(buffer, {'strength': 3, 'method': 'scharr'})
"""

from skin_tools.filters.channels import (
    combine,
    extract_channel,
    metalness_map,
    to_grayscale,
)
from skin_tools.filters.image import FILTERS, apply_filter
from skin_tools.filters.normal import (
    NormalMapSettings,
    compute_normals,
    decode_normal_map,
    generate_normal_map,
)

__all__ = [
    "FILTERS",
    "NormalMapSettings",
    "apply_filter",
    "combine",
    "compute_normals",
    "decode_normal_map",
    "extract_channel",
    "generate_normal_map",
    "metalness_map",
    "to_grayscale",
]
