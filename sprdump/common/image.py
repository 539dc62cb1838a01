import os

import numpy as np
from PIL import Image


def new_raster(width=32, height=32):
    """Blank (fully transparent) RGBA raster, indexed [y, x, channel]."""
    return np.zeros((height, width, 4), dtype=np.uint8)


def save_raster(raster, path):
    """Write an RGBA raster to disk; format follows the file extension.

    BMP has no usable alpha channel, so the raster is flattened to RGB.
    """
    img = Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8))
    ext = os.path.splitext(path)[1].lower()
    if ext == '.bmp':
        img = img.convert('RGB')
    img.save(path)


def ensure_dir(path):
    """Create an output directory if needed. Returns True when it was created."""
    if os.path.isdir(path):
        return False
    print(f"Creating directory {path}... ", end='')
    os.makedirs(path, exist_ok=True)
    print("Success")
    return True
