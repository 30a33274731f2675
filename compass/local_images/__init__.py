"""
Local image assets.

Enumerates image files under the web app's asset folders and matches them
to destination names.
"""

from compass.local_images.catalog import IMAGE_EXTENSIONS, list_local_images, order_by_root
from compass.local_images.matcher import LocalImageMatcher
from compass.local_images.overrides import OverrideConfig, load_overrides

__all__ = [
    "IMAGE_EXTENSIONS",
    "list_local_images",
    "order_by_root",
    "LocalImageMatcher",
    "OverrideConfig",
    "load_overrides",
]
