from .las import LasPointWriter, create_las_header

__all__ = ("LasPointWriter", "create_las_header")
