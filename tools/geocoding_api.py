# tools/geocoding_api.py

from typing import Optional
import requests
from core.config import settings

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"


def get_coordinates_for_location(location_query: str) -> Optional[dict]:
    """
    Fetches the latitude and longitude for a location such as "Thrissur, Kerala".
    Returns a dictionary with 'latitude' and 'longitude', or None when nothing matches.
    """
    if not location_query or not location_query.strip():
        return None

    print(f"---TOOL: Geocoding for '{location_query}'---")
    params = {'q': location_query, 'format': 'json', 'limit': 1}
    headers = {'User-Agent': 'FarmLedgerAI/1.0'}  # Nominatim requires a user-agent

    try:
        response = requests.get(NOMINATIM_URL, params=params, headers=headers, timeout=settings.http_timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        print(f"---TOOL: Geocoding request failed: {e}---")
        return None

    if not data:
        return None
    try:
        return {"latitude": float(data[0]['lat']), "longitude": float(data[0]['lon'])}
    except (KeyError, IndexError, TypeError, ValueError) as e:
        print(f"---TOOL: Error parsing geocoding data: {e}---")
        return None
