"""Human-readable labels for the live parameters."""

from __future__ import annotations

from tidepool.config import SimulationParameters


def format_exponent(value: float) -> str:
    """Format like ``1.00×10^24``."""

    mantissa, exponent = f"{value:.2e}".split("e")
    return f"{float(mantissa):.2f}×10^{int(exponent)}"


def grid_label(grid_size: int) -> str:
    return f"{grid_size}×{grid_size}"


def describe_parameters(params: SimulationParameters) -> dict[str, str]:
    source = params.derive()
    center_km = source.center_height_m / 1000.0
    return {
        "mass": f"{format_exponent(source.mass_kg)} kg",
        "volume": f"{format_exponent(source.volume_km3)} km^3 · radius {source.radius_m / 1000.0:.1f} km",
        "height": f"{params.height_km:.0f} km · center {center_km:.0f} km",
    }
