from typing import NamedTuple, Self

from shapely import Point, get_coordinates, points


class BBox(NamedTuple):
    p1: Point
    p2: Point

    @classmethod
    def from_tuple(cls, bbox: tuple[float, float, float, float]) -> Self:
        min_lon, min_lat, max_lon, max_lat = bbox

        if not (-180 <= min_lon <= 180 and -180 <= max_lon <= 180):
            raise ValueError(f'Longitude out of range in {bbox!r}')
        if not (-90 <= min_lat <= 90 and -90 <= max_lat <= 90):
            raise ValueError(f'Latitude out of range in {bbox!r}')
        if min_lon > max_lon or min_lat > max_lat:
            raise ValueError(f'Minimum exceeds maximum in {bbox!r}')

        p1, p2 = points(((min_lon, min_lat), (max_lon, max_lat)))
        return cls(p1, p2)

    def to_tuple(self) -> tuple[float, float, float, float]:
        p1_x, p1_y = get_coordinates(self.p1)[0]
        p2_x, p2_y = get_coordinates(self.p2)[0]

        return (float(p1_x), float(p1_y), float(p2_x), float(p2_y))

    def to_query(self) -> str:
        """
        Format as the `bbox` query parameter of the OpenStreetMap API: left,bottom,right,top.
        """
        return ','.join(f'{v:.7f}' for v in self.to_tuple())
