from .table import TableController

__all__ = ["TableController"]
