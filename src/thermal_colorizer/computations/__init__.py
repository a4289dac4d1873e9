"""Stateless numeric computations: domain mapping, colour lookup and image sampling."""

from .domain_mapping import (
    INTENSITY_MAX,
    TEMPERATURE_GRADIENT,
    DomainMapping,
    index_to_rgb,
    map_domain,
)
from .projection import (
    Interpolation,
    project_points,
    sample,
    sample_batch,
    sample_images,
    transform_points,
)

__all__ = (
    "INTENSITY_MAX",
    "TEMPERATURE_GRADIENT",
    "DomainMapping",
    "Interpolation",
    "index_to_rgb",
    "map_domain",
    "project_points",
    "sample",
    "sample_batch",
    "sample_images",
    "transform_points",
)
