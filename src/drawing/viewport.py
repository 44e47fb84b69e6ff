"""
Viewport - Maps between screen and document coordinates
"""

from calculations.geometry import Point

MIN_ZOOM = 0.1
MAX_ZOOM = 20.0
WHEEL_ZOOM_FACTOR = 1.1
FIT_PADDING = 0.95


class Viewport:
    """Zoom and pan state for the drawing canvas"""

    def __init__(self, zoom=1.0, offset=(0.0, 0.0)):
        self.zoom = zoom
        self.offset = Point(*offset)
        self.page_width = 0.0
        self.page_height = 0.0
        self.canvas_width = 0.0
        self.canvas_height = 0.0

    def set_page_dimensions(self, width, height):
        """Pixel size of the background drawing"""
        self.page_width = float(width)
        self.page_height = float(height)

    def set_canvas_size(self, width, height):
        self.canvas_width = float(width)
        self.canvas_height = float(height)

    def to_document(self, screen_point) -> Point:
        return Point((screen_point[0] - self.offset.x) / self.zoom,
                     (screen_point[1] - self.offset.y) / self.zoom)

    def to_screen(self, doc_point) -> Point:
        return Point(doc_point[0] * self.zoom + self.offset.x,
                     doc_point[1] * self.zoom + self.offset.y)

    def screen_to_document_distance(self, pixels) -> float:
        """Convert a screen-space tolerance into document pixels"""
        return pixels / self.zoom

    def zoom_at(self, screen_point, factor):
        """Zoom by factor keeping the document point under the cursor fixed"""
        new_zoom = min(MAX_ZOOM, max(MIN_ZOOM, self.zoom * factor))
        anchor = self.to_document(screen_point)
        self.zoom = new_zoom
        self.offset = Point(screen_point[0] - anchor.x * new_zoom,
                            screen_point[1] - anchor.y * new_zoom)

    def wheel(self, screen_point, delta):
        """Mouse wheel: positive delta zooms in"""
        if delta == 0:
            return
        self.zoom_at(screen_point, WHEEL_ZOOM_FACTOR if delta > 0 else 1.0 / WHEEL_ZOOM_FACTOR)

    def pan(self, dx, dy):
        self.offset = Point(self.offset.x + dx, self.offset.y + dy)

    def fit(self):
        """Fit the whole page in the canvas with a small margin"""
        if not (self.page_width and self.page_height and self.canvas_width and self.canvas_height):
            self.zoom = 1.0
            self.offset = Point(0.0, 0.0)
            return
        zoom = min(self.canvas_width / self.page_width, self.canvas_height / self.page_height) * FIT_PADDING
        self.zoom = min(MAX_ZOOM, max(MIN_ZOOM, zoom))
        self.offset = Point((self.canvas_width - self.page_width * self.zoom) / 2.0,
                            (self.canvas_height - self.page_height * self.zoom) / 2.0)
