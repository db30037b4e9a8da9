"""Boston configuration, area knowledge and tuned travel times."""
from __future__ import annotations

from dayplanner.core.schemas import Area, CityConfig, CrowdLevels, LatLng, TransportMode

CITY = CityConfig(
    slug="boston",
    name="Boston",
    timezone="America/New_York",
    default_location=LatLng(lat=42.3601, lng=-71.0589),
    major_areas=("Back Bay", "North End", "Beacon Hill", "Cambridge", "South End"),
    transport_modes=(
        TransportMode.WALK,
        TransportMode.TRANSIT,
        TransportMode.DRIVING,
        TransportMode.CYCLING,
    ),
    business_categories={
        "restaurant": ("seafood restaurant", "Irish pub", "clam chowder", "lobster roll"),
        "coffee": ("coffee shop", "cafe", "bakery", "cannoli shop"),
        "shopping": ("Quincy Market", "Faneuil Hall", "downtown crossing", "Newbury Street"),
        "entertainment": ("museum", "theater", "freedom trail", "historical site"),
        "nightlife": ("Irish pub", "craft brewery", "cocktail bar", "sports bar"),
        "fitness": ("gym", "Charles River", "Boston Common", "fitness center"),
    },
    city_aliases=("boston", "ma", "massachusetts", "cambridge", "somerville", "brookline"),
)

AREAS = (
    Area(
        name="Back Bay",
        coordinates=LatLng(lat=42.3503, lng=-71.0810),
        characteristics=("upscale", "elegant", "historic", "stylish"),
        popular_for=("shopping", "brunch", "coffee", "restaurants", "architecture"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=3, weekend=4),
        neighbors=("Beacon Hill", "South End", "Fenway"),
        alternative_names=("newbury street", "copley square", "boylston street"),
        common_misspellings=("backbay", "back bey"),
        landmarks=("boston public library", "prudential center", "trinity church"),
    ),
    Area(
        name="North End",
        coordinates=LatLng(lat=42.3647, lng=-71.0542),
        characteristics=("historic", "italian", "charming", "lively", "busy"),
        popular_for=("italian food", "dinner", "cannoli", "coffee", "history"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=5, weekend=5),
        neighbors=("Downtown", "Beacon Hill"),
        alternative_names=("little italy", "hanover street"),
        common_misspellings=("northend", "north ende"),
        landmarks=("paul revere house", "old north church", "mike's pastry"),
    ),
    Area(
        name="Beacon Hill",
        coordinates=LatLng(lat=42.3588, lng=-71.0707),
        characteristics=("historic", "quiet", "charming", "residential", "upscale"),
        popular_for=("walks", "antique shopping", "history", "coffee", "parks"),
        crowd_levels=CrowdLevels(morning=1, afternoon=2, evening=2, weekend=3),
        neighbors=("Back Bay", "Downtown", "North End"),
        alternative_names=("charles street", "acorn street"),
        common_misspellings=("beacon hil", "beakon hill"),
        landmarks=("massachusetts state house", "boston common", "public garden"),
    ),
    Area(
        name="Cambridge",
        coordinates=LatLng(lat=42.3736, lng=-71.1097),
        characteristics=("academic", "intellectual", "diverse", "lively"),
        popular_for=("museums", "bookshops", "coffee", "bars", "restaurants"),
        crowd_levels=CrowdLevels(morning=3, afternoon=3, evening=3, weekend=3),
        neighbors=(),
        alternative_names=("harvard square", "kendall square", "central square"),
        common_misspellings=("cambrige", "cambridg"),
        landmarks=("harvard", "mit", "harvard art museums"),
    ),
    Area(
        name="South End",
        coordinates=LatLng(lat=42.3388, lng=-71.0765),
        characteristics=("trendy", "residential", "artsy", "diverse"),
        popular_for=("brunch", "restaurants", "galleries", "drinks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=2, evening=4, weekend=4),
        neighbors=("Back Bay",),
        alternative_names=("sowa", "tremont street"),
        common_misspellings=("southend",),
        landmarks=("sowa open market",),
    ),
    Area(
        name="Seaport",
        coordinates=LatLng(lat=42.3519, lng=-71.0446),
        characteristics=("modern", "waterfront", "business", "trendy"),
        popular_for=("seafood", "drinks", "after-work drinks", "museums", "harbour walks"),
        crowd_levels=CrowdLevels(morning=3, afternoon=3, evening=4, weekend=4),
        neighbors=("Downtown",),
        alternative_names=("seaport district", "innovation district", "fort point"),
        common_misspellings=("sea port", "seeport"),
        landmarks=("institute of contemporary art", "boston tea party ships"),
    ),
    Area(
        name="Fenway",
        coordinates=LatLng(lat=42.3467, lng=-71.0972),
        characteristics=("sporty", "lively", "cultural", "student"),
        popular_for=("baseball", "bars", "museums", "drinks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=5, weekend=5),
        neighbors=("Back Bay",),
        alternative_names=("kenmore square", "the fens"),
        common_misspellings=("fenwey",),
        landmarks=("fenway park", "isabella stewart gardner museum", "museum of fine arts"),
    ),
    Area(
        name="Downtown",
        coordinates=LatLng(lat=42.3555, lng=-71.0602),
        characteristics=("busy", "historic", "business", "touristy"),
        popular_for=("shopping", "sightseeing", "history", "lunch"),
        crowd_levels=CrowdLevels(morning=4, afternoon=5, evening=3, weekend=4),
        neighbors=("Beacon Hill", "North End", "Seaport"),
        alternative_names=("downtown crossing", "financial district", "government center"),
        common_misspellings=("down town",),
        landmarks=("faneuil hall", "quincy market", "old state house"),
    ),
)

TRAVEL_TABLE = {
    ("back bay", "beacon hill"): (15, 8, 8, "walk"),
    ("back bay", "cambridge"): (30, 15, 12),
    ("back bay", "south end"): (10, 10, 8, "walk"),
    ("back bay", "north end"): (30, 15, 12),
    ("north end", "beacon hill"): (15, 10, 10, "walk"),
    ("beacon hill", "cambridge"): (35, 12, 12),
}

TRANSIT_LINES = {
    ("back bay", "cambridge"): (("Green", "Red"), 1),
    ("beacon hill", "cambridge"): (("Red",), 0),
    ("back bay", "north end"): (("Orange",), 0),
}
