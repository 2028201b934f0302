import os

import pytest

from logic.selection import Node, Taxonomy
from logic.taxonomy import load_reference_taxonomy
from utils.constants import GEOGRAPHY_LEVELS, INDUSTRY_LEVELS

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture
def europe():
    """1 continent, 2 regions, 2 sub-regions each."""
    return Taxonomy(
        [
            Node("eu", "Europe", (
                Node("we", "Western Europe", (Node("fr", "France"), Node("de", "Germany"))),
                Node("ne", "Northern Europe", (Node("se", "Sweden"), Node("no", "Norway"))),
            )),
        ],
        GEOGRAPHY_LEVELS,
    )


@pytest.fixture
def world():
    """Three continents; Oceania's regions have no sub-regions (leaves by design)."""
    return Taxonomy(
        [
            Node("eu", "Europe", (
                Node("we", "Western Europe", (Node("fr", "France"), Node("de", "Germany"))),
                Node("ne", "Northern Europe", (Node("se", "Sweden"), Node("no", "Norway"))),
            )),
            Node("as", "Asia", (
                Node("ea", "East Asia", (Node("jp", "Japan"), Node("kr", "South Korea"))),
            )),
            Node("oc", "Oceania", (Node("au", "Australia"), Node("nz", "New Zealand"))),
        ],
        GEOGRAPHY_LEVELS,
    )


@pytest.fixture
def geography_csv():
    return os.path.join(FIXTURES, "geography_small.csv")


@pytest.fixture
def industry_csv():
    return os.path.join(FIXTURES, "industry_small.csv")


@pytest.fixture
def industry(industry_csv):
    return load_reference_taxonomy(industry_csv, INDUSTRY_LEVELS)
