"""New York City configuration, area knowledge and tuned travel times."""
from __future__ import annotations

from dayplanner.core.schemas import Area, CityConfig, CrowdLevels, LatLng, TransportMode

CITY = CityConfig(
    slug="nyc",
    name="New York City",
    timezone="America/New_York",
    default_location=LatLng(lat=40.7128, lng=-74.0060),
    major_areas=("SoHo", "Greenwich Village", "Midtown", "Financial District", "Upper West Side"),
    transport_modes=(
        TransportMode.WALK,
        TransportMode.TRANSIT,
        TransportMode.DRIVING,
        TransportMode.CYCLING,
    ),
    business_categories={
        "restaurant": ("diner", "pizza", "deli", "steakhouse"),
        "coffee": ("coffee shop", "cafe", "bakery", "bagel shop"),
        "shopping": ("department store", "boutique", "outlet", "flea market"),
        "entertainment": ("Broadway show", "comedy club", "museum", "concert venue"),
        "nightlife": ("bar", "cocktail lounge", "nightclub", "jazz club"),
        "fitness": ("gym", "yoga studio", "Central Park", "fitness center"),
    },
    city_aliases=(
        "new york",
        "ny",
        "nyc",
        "manhattan",
        "brooklyn",
        "queens",
        "bronx",
        "staten island",
    ),
)

AREAS = (
    Area(
        name="SoHo",
        coordinates=LatLng(lat=40.7233, lng=-74.0030),
        characteristics=("trendy", "upscale", "artsy", "busy", "stylish"),
        popular_for=("shopping", "galleries", "coffee", "brunch", "restaurants"),
        crowd_levels=CrowdLevels(morning=2, afternoon=5, evening=3, weekend=5),
        neighbors=("Greenwich Village", "Tribeca", "Lower East Side"),
        alternative_names=("south of houston", "nolita"),
        common_misspellings=("so ho", "sohoe"),
        landmarks=("spring street", "broadway soho"),
    ),
    Area(
        name="Greenwich Village",
        coordinates=LatLng(lat=40.7336, lng=-74.0027),
        characteristics=("bohemian", "historic", "charming", "lively", "residential"),
        popular_for=("coffee", "jazz", "bars", "restaurants", "comedy", "drinks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=4, weekend=4),
        neighbors=("SoHo", "Chelsea", "East Village"),
        alternative_names=("the village", "west village"),
        common_misspellings=("greenwhich village", "grenwich village"),
        landmarks=("washington square park", "blue note", "stonewall inn"),
    ),
    Area(
        name="Midtown",
        coordinates=LatLng(lat=40.7549, lng=-73.9840),
        characteristics=("busy", "touristy", "business", "iconic", "crowded"),
        popular_for=("theatre", "sightseeing", "shopping", "business lunch", "landmarks"),
        crowd_levels=CrowdLevels(morning=4, afternoon=5, evening=5, weekend=5),
        neighbors=("Chelsea", "Upper East Side", "Upper West Side"),
        alternative_names=("times square", "theater district", "midtown manhattan", "hell's kitchen"),
        common_misspellings=("mid town", "midtwon"),
        landmarks=("empire state building", "rockefeller center", "bryant park", "moma"),
    ),
    Area(
        name="Financial District",
        coordinates=LatLng(lat=40.7075, lng=-74.0113),
        characteristics=("business", "historic", "corporate", "waterfront"),
        popular_for=("business lunch", "sightseeing", "history", "after-work drinks"),
        crowd_levels=CrowdLevels(morning=5, afternoon=4, evening=2, weekend=2),
        neighbors=("Tribeca",),
        alternative_names=("fidi", "wall street", "lower manhattan", "battery park"),
        common_misspellings=("financial distric", "finacial district"),
        landmarks=("9/11 memorial", "one world trade center", "charging bull", "stone street"),
    ),
    Area(
        name="Upper West Side",
        coordinates=LatLng(lat=40.7870, lng=-73.9754),
        characteristics=("residential", "family-friendly", "quiet", "green", "cultural"),
        popular_for=("museums", "parks", "brunch", "coffee", "walks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=3),
        neighbors=("Midtown",),
        alternative_names=("uws", "lincoln square"),
        common_misspellings=("upper westside",),
        landmarks=("american museum of natural history", "lincoln center", "riverside park"),
    ),
    Area(
        name="Upper East Side",
        coordinates=LatLng(lat=40.7736, lng=-73.9566),
        characteristics=("upscale", "elegant", "residential", "quiet", "cultural"),
        popular_for=("museums", "galleries", "fine dining", "boutique shopping"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=4),
        neighbors=("Midtown",),
        alternative_names=("ues", "museum mile", "lenox hill"),
        common_misspellings=("upper eastside",),
        landmarks=("metropolitan museum of art", "the met", "guggenheim", "frick collection"),
    ),
    Area(
        name="Chelsea",
        coordinates=LatLng(lat=40.7465, lng=-74.0014),
        characteristics=("artsy", "trendy", "lively", "creative"),
        popular_for=("galleries", "food market", "walks", "bars", "drinks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=4, weekend=5),
        neighbors=("Greenwich Village", "Midtown"),
        alternative_names=("meatpacking district", "hudson yards"),
        common_misspellings=("chelsey",),
        landmarks=("high line", "chelsea market", "the vessel"),
    ),
    Area(
        name="East Village",
        coordinates=LatLng(lat=40.7265, lng=-73.9815),
        characteristics=("alternative", "lively", "diverse", "bohemian"),
        popular_for=("bars", "nightlife", "restaurants", "coffee", "drinks"),
        crowd_levels=CrowdLevels(morning=1, afternoon=3, evening=5, weekend=5),
        neighbors=("Greenwich Village", "Lower East Side"),
        alternative_names=("alphabet city", "st marks place"),
        common_misspellings=("east vilage",),
        landmarks=("tompkins square park",),
    ),
    Area(
        name="Lower East Side",
        coordinates=LatLng(lat=40.7150, lng=-73.9843),
        characteristics=("historic", "trendy", "lively", "diverse"),
        popular_for=("nightlife", "bars", "delis", "galleries", "drinks"),
        crowd_levels=CrowdLevels(morning=1, afternoon=3, evening=5, weekend=5),
        neighbors=("East Village", "SoHo"),
        alternative_names=("les", "orchard street"),
        common_misspellings=("lower eastside",),
        landmarks=("katz's delicatessen", "tenement museum"),
    ),
    Area(
        name="Tribeca",
        coordinates=LatLng(lat=40.7163, lng=-74.0086),
        characteristics=("upscale", "quiet", "residential", "stylish"),
        popular_for=("fine dining", "brunch", "coffee", "restaurants"),
        crowd_levels=CrowdLevels(morning=2, afternoon=2, evening=3, weekend=3),
        neighbors=("SoHo", "Financial District"),
        alternative_names=("triangle below canal",),
        common_misspellings=("tribecca", "tri beca"),
        landmarks=("hudson river park",),
    ),
)

TRAVEL_TABLE = {
    ("soho", "greenwich village"): (12, 8, 10, "walk"),
    ("soho", "financial district"): (25, 12, 12),
    ("soho", "midtown"): (40, 15, 18),
    ("midtown", "financial district"): (60, 20, 20),
    ("midtown", "upper west side"): (35, 12, 15),
    ("midtown", "upper east side"): (30, 12, 14),
    ("greenwich village", "midtown"): (35, 14, 16),
}

TRANSIT_LINES = {
    ("midtown", "financial district"): (("4", "5"), 0),
    ("midtown", "upper west side"): (("1",), 0),
    ("soho", "midtown"): (("N", "R"), 0),
}
