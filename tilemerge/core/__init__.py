from .rect import Rect, Point, clip_to
from .pixels import PixelBuffer, InvalidDimensionsError, TRANSPARENT
from .handle import RefCountedHandle
from .grid import TileGrid, EmptyGridError
# Compositor lives in .compositor; it imports the PNG writer, which imports this package
