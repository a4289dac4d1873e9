"""
Readers for the inputs of a colorization run.

- **Project metadata**: :func:`load_project` parses the JSON project description
  into read-only :class:`~thermal_colorizer.container_models.Project` metadata.
- **Name map**: :func:`load_name_map` reads the optional file-name to image-name map.
- **Thermal images**: :func:`load_thermal_image` decodes an image file with the
  decoder registered for its suffix.
- **Point streams**: :func:`open_point_stream` opens a point source with the
  reader registered for its suffix and yields it lazily in chunks.
"""

from .name_map import NameMap, load_name_map
from .point_streams import DEFAULT_CHUNK_SIZE, open_point_stream, register_point_reader
from .project import load_project
from .thermal_images import (
    TemperatureUnit,
    image_suffixes,
    load_thermal_image,
    register_image_decoder,
)

__all__ = (
    "DEFAULT_CHUNK_SIZE",
    "NameMap",
    "TemperatureUnit",
    "image_suffixes",
    "load_name_map",
    "load_project",
    "load_thermal_image",
    "open_point_stream",
    "register_image_decoder",
    "register_point_reader",
)
