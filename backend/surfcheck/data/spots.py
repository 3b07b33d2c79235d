"""
Surf spots served by the API, grouped into regions.
orientation: direction the beach faces (degrees, towards the sea); offshore wind blows
from orientation + 180. swell_directions: directions (swell "from") that line up best.
Add or edit entries here; ids are what schedulings and forecast URLs use.
"""
from typing import TypedDict


class SpotData(TypedDict):
    id: str
    name: str
    lat: float
    lon: float
    region: str
    region_name: str
    orientation: float
    swell_directions: list[float]
    ideal_height: tuple[float, float]
    ideal_period: tuple[float, float]
    tide_preference: str  # low | mid | high | any
    tide_range: tuple[float, float]
    bottom_type: str  # beachbreak | point | reef


REGIONS: dict[str, str] = {
    "ubatuba": "Ubatuba (SP)",
    "sao_sebastiao": "São Sebastião (SP)",
    "florianopolis": "Florianópolis (SC)",
    "rio_de_janeiro": "Rio de Janeiro (RJ)",
}

SPOTS: list[SpotData] = [
    {
        "id": "itamambuca", "name": "Itamambuca", "lat": -23.400, "lon": -45.009,
        "region": "ubatuba", "region_name": REGIONS["ubatuba"],
        "orientation": 135, "swell_directions": [135, 157.5],
        "ideal_height": (0.8, 2.2), "ideal_period": (9, 14),
        "tide_preference": "mid", "tide_range": (-0.4, 0.6), "bottom_type": "beachbreak",
    },
    {
        "id": "vermelha_norte", "name": "Vermelha do Norte", "lat": -23.417, "lon": -45.040,
        "region": "ubatuba", "region_name": REGIONS["ubatuba"],
        "orientation": 150, "swell_directions": [157.5, 180],
        "ideal_height": (0.6, 1.8), "ideal_period": (9, 13),
        "tide_preference": "any", "tide_range": (-0.4, 0.6), "bottom_type": "beachbreak",
    },
    {
        "id": "felix", "name": "Praia do Félix", "lat": -23.385, "lon": -44.966,
        "region": "ubatuba", "region_name": REGIONS["ubatuba"],
        "orientation": 120, "swell_directions": [112.5, 135],
        "ideal_height": (0.8, 2.0), "ideal_period": (10, 15),
        "tide_preference": "low", "tide_range": (-0.4, 0.6), "bottom_type": "point",
    },
    {
        "id": "maresias", "name": "Maresias", "lat": -23.792, "lon": -45.566,
        "region": "sao_sebastiao", "region_name": REGIONS["sao_sebastiao"],
        "orientation": 170, "swell_directions": [180, 202.5],
        "ideal_height": (1.0, 2.5), "ideal_period": (10, 15),
        "tide_preference": "mid", "tide_range": (-0.4, 0.7), "bottom_type": "beachbreak",
    },
    {
        "id": "camburi", "name": "Camburi", "lat": -23.774, "lon": -45.649,
        "region": "sao_sebastiao", "region_name": REGIONS["sao_sebastiao"],
        "orientation": 165, "swell_directions": [157.5, 180],
        "ideal_height": (0.8, 2.0), "ideal_period": (9, 14),
        "tide_preference": "high", "tide_range": (-0.4, 0.7), "bottom_type": "beachbreak",
    },
    {
        "id": "joaquina", "name": "Joaquina", "lat": -27.629, "lon": -48.449,
        "region": "florianopolis", "region_name": REGIONS["florianopolis"],
        "orientation": 100, "swell_directions": [112.5, 135, 157.5],
        "ideal_height": (0.8, 2.5), "ideal_period": (9, 15),
        "tide_preference": "any", "tide_range": (-0.3, 0.5), "bottom_type": "beachbreak",
    },
    {
        "id": "campeche", "name": "Campeche", "lat": -27.690, "lon": -48.475,
        "region": "florianopolis", "region_name": REGIONS["florianopolis"],
        "orientation": 110, "swell_directions": [135, 157.5],
        "ideal_height": (0.8, 2.2), "ideal_period": (9, 14),
        "tide_preference": "mid", "tide_range": (-0.3, 0.5), "bottom_type": "beachbreak",
    },
    {
        "id": "mole", "name": "Praia Mole", "lat": -27.603, "lon": -48.433,
        "region": "florianopolis", "region_name": REGIONS["florianopolis"],
        "orientation": 95, "swell_directions": [90, 112.5],
        "ideal_height": (0.6, 1.8), "ideal_period": (8, 13),
        "tide_preference": "any", "tide_range": (-0.3, 0.5), "bottom_type": "beachbreak",
    },
    {
        "id": "prainha", "name": "Prainha", "lat": -23.041, "lon": -43.506,
        "region": "rio_de_janeiro", "region_name": REGIONS["rio_de_janeiro"],
        "orientation": 180, "swell_directions": [180, 202.5],
        "ideal_height": (1.0, 2.5), "ideal_period": (10, 16),
        "tide_preference": "mid", "tide_range": (-0.5, 0.8), "bottom_type": "beachbreak",
    },
    {
        "id": "arpoador", "name": "Arpoador", "lat": -22.989, "lon": -43.192,
        "region": "rio_de_janeiro", "region_name": REGIONS["rio_de_janeiro"],
        "orientation": 160, "swell_directions": [180, 202.5],
        "ideal_height": (0.8, 2.0), "ideal_period": (10, 15),
        "tide_preference": "low", "tide_range": (-0.5, 0.8), "bottom_type": "point",
    },
]
