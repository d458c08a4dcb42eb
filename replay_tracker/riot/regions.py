"""Platform region -> Riot regional routing value."""

from __future__ import annotations

API_REGION_MAP: dict[str, str] = {
    "NA": "americas",
    "BR": "americas",
    "LAN": "americas",
    "LAS": "americas",
    "EUW": "europe",
    "EUNE": "europe",
    "RU": "europe",
    "TR": "europe",
    "KR": "asia",
    "JP": "asia",
    "OCE": "sea",
}


def get_api_region(region: str) -> str:
    """Return the regional routing value for a platform region code."""
    api_region = API_REGION_MAP.get(region.upper())
    if api_region is None:
        raise ValueError(f"unsupported region: {region}")
    return api_region
