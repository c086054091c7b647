"""
Procedural synthesis: seeded noise kernels, texture generators and smart
masks.

Example::

    from skin_tools.synth import generate, generate_mask

    noise = generate('noise', {'seed': 42, 'octaves': 4}, 256, 256)
    mask = generate_mask('vignette', None, 256, 256)
"""

from skin_tools.synth.generators import GENERATORS, generate, make_params
from skin_tools.synth.masks import MASKS, generate_mask

__all__ = [
    "GENERATORS",
    "MASKS",
    "generate",
    "generate_mask",
    "make_params",
]
