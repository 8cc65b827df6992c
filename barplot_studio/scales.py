from __future__ import annotations

import sys
from dataclasses import dataclass

_EPS = sys.float_info.epsilon


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


@dataclass(frozen=True)
class AxisMapping:
    # value domain
    domain_min: float
    domain_max: float
    # pixel anchors; pixel_end < pixel_start for an upward (y) axis
    pixel_start: float
    pixel_end: float

    @property
    def span(self) -> float:
        return max(self.domain_max - self.domain_min, _EPS)

    def ratio(self, v: float) -> float:
        return clamp((v - self.domain_min) / self.span, 0.0, 1.0)

    def to_pixel(self, v: float) -> float:
        # values outside the domain pin to the nearest edge
        return self.pixel_start + self.ratio(v) * (self.pixel_end - self.pixel_start)

    def to_value(self, p: float) -> float:
        extent = self.pixel_end - self.pixel_start
        if extent == 0:
            return self.domain_min
        t = (p - self.pixel_start) / extent
        return self.domain_min + t * self.span

    def baseline(self) -> float:
        """Pixel position of zero, or of the domain edge nearest to it."""
        return self.to_pixel(clamp(0.0, self.domain_min, self.domain_max))
