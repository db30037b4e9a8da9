"""London configuration, area knowledge and tuned travel times."""
from __future__ import annotations

from dayplanner.core.schemas import Area, CityConfig, CrowdLevels, LatLng, TransportMode

CITY = CityConfig(
    slug="london",
    name="London",
    timezone="Europe/London",
    default_location=LatLng(lat=51.5074, lng=-0.1278),
    major_areas=("Canary Wharf", "Mayfair", "Soho", "Kensington", "Shoreditch"),
    transport_modes=(
        TransportMode.WALK,
        TransportMode.TRANSIT,
        TransportMode.DRIVING,
        TransportMode.CYCLING,
    ),
    business_categories={
        "restaurant": ("gastropub", "pub", "curry house", "fish and chips"),
        "coffee": ("coffee shop", "tea room", "cafe", "patisserie"),
        "shopping": ("department store", "high street shops", "markets", "boutiques"),
        "entertainment": ("theatre", "museum", "gallery", "cinema"),
        "nightlife": ("pub", "cocktail bar", "club", "wine bar"),
        "fitness": ("gym", "swimming pool", "park", "fitness centre"),
    },
    city_aliases=("london", "uk", "united kingdom", "england"),
)

AREAS = (
    Area(
        name="Mayfair",
        coordinates=LatLng(lat=51.5099, lng=-0.1495),
        characteristics=("upscale", "luxury", "elegant", "quiet", "historic"),
        popular_for=("fine dining", "lunch", "art galleries", "luxury shopping", "cocktails"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=3, weekend=3),
        neighbors=("Soho", "Marylebone", "Westminster", "Covent Garden"),
        alternative_names=("bond street", "berkeley square", "grosvenor square"),
        common_misspellings=("mayfare", "may fair"),
        landmarks=("the ritz", "burlington arcade", "savile row"),
    ),
    Area(
        name="Soho",
        coordinates=LatLng(lat=51.5136, lng=-0.1371),
        characteristics=("lively", "trendy", "creative", "busy", "diverse"),
        popular_for=("coffee", "cafes", "restaurants", "bars", "nightlife", "theatre", "drinks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=5, weekend=5),
        neighbors=("Mayfair", "Covent Garden", "Bloomsbury", "Marylebone"),
        alternative_names=("carnaby street", "chinatown", "soho square"),
        common_misspellings=("sohoe", "so ho"),
        landmarks=("carnaby", "old compton street", "leicester square"),
    ),
    Area(
        name="Covent Garden",
        coordinates=LatLng(lat=51.5117, lng=-0.1240),
        characteristics=("touristy", "lively", "historic", "cultural", "busy"),
        popular_for=("theatre", "shopping", "restaurants", "street performers", "coffee"),
        crowd_levels=CrowdLevels(morning=3, afternoon=5, evening=4, weekend=5),
        neighbors=("Soho", "Bloomsbury", "South Bank", "Westminster"),
        alternative_names=("seven dials", "covent", "the piazza"),
        common_misspellings=("convent garden", "covent gardens", "coven garden"),
        landmarks=("royal opera house", "london transport museum", "neal's yard"),
    ),
    Area(
        name="Marylebone",
        coordinates=LatLng(lat=51.5186, lng=-0.1527),
        characteristics=("village feel", "quiet", "upscale", "independent", "residential"),
        popular_for=("coffee", "brunch", "boutique shopping", "restaurants", "museums"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=3),
        neighbors=("Mayfair", "Soho", "Camden"),
        alternative_names=("marylebone village", "marylebone high street", "baker street"),
        common_misspellings=("marleybone", "marylebon", "marylbone"),
        landmarks=("wallace collection", "madame tussauds", "regent's park"),
    ),
    Area(
        name="Bloomsbury",
        coordinates=LatLng(lat=51.5205, lng=-0.1260),
        characteristics=("academic", "quiet", "literary", "historic", "cultural"),
        popular_for=("museums", "bookshops", "coffee", "cafes", "history"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=3),
        neighbors=("Soho", "Covent Garden", "King's Cross"),
        alternative_names=("russell square", "fitzrovia"),
        common_misspellings=("bloomsbery", "bloomsberry"),
        landmarks=("british museum", "russell square gardens"),
    ),
    Area(
        name="Chelsea",
        coordinates=LatLng(lat=51.4875, lng=-0.1687),
        characteristics=("upscale", "stylish", "residential", "elegant", "trendy"),
        popular_for=("drinks", "cocktails", "boutique shopping", "restaurants", "brunch"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=3, weekend=4),
        neighbors=("South Kensington", "Kensington"),
        alternative_names=("king's road", "sloane square", "chelsea harbour"),
        common_misspellings=("chelsey", "chelsae"),
        landmarks=("saatchi gallery", "chelsea physic garden"),
    ),
    Area(
        name="Kensington",
        coordinates=LatLng(lat=51.5020, lng=-0.1947),
        characteristics=("upscale", "residential", "green", "family-friendly", "elegant"),
        popular_for=("parks", "afternoon tea", "shopping", "museums", "walks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=4),
        neighbors=("Chelsea", "South Kensington", "Notting Hill"),
        alternative_names=("kensington high street", "holland park"),
        common_misspellings=("kensingon", "kensigton"),
        landmarks=("kensington palace", "kensington gardens", "hyde park"),
    ),
    Area(
        name="South Kensington",
        coordinates=LatLng(lat=51.4941, lng=-0.1738),
        characteristics=("cultural", "academic", "family-friendly", "elegant"),
        popular_for=("museums", "culture", "coffee", "history", "science"),
        crowd_levels=CrowdLevels(morning=3, afternoon=4, evening=2, weekend=5),
        neighbors=("Kensington", "Chelsea"),
        alternative_names=("south ken", "exhibition road", "museum quarter"),
        common_misspellings=("south kensingon",),
        landmarks=(
            "natural history museum",
            "science museum",
            "victoria and albert museum",
            "v&a",
            "royal albert hall",
        ),
    ),
    Area(
        name="Notting Hill",
        coordinates=LatLng(lat=51.5096, lng=-0.2043),
        characteristics=("bohemian", "colourful", "residential", "charming", "trendy"),
        popular_for=("markets", "brunch", "coffee", "vintage shopping", "walks"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=2, weekend=5),
        neighbors=("Kensington",),
        alternative_names=("portobello road", "westbourne grove"),
        common_misspellings=("noting hill", "nottinghill"),
        landmarks=("portobello market",),
    ),
    Area(
        name="Shoreditch",
        coordinates=LatLng(lat=51.5264, lng=-0.0778),
        characteristics=("hipster", "creative", "trendy", "artsy", "lively"),
        popular_for=("coffee", "street art", "bars", "nightlife", "vintage shopping", "street food"),
        crowd_levels=CrowdLevels(morning=2, afternoon=3, evening=5, weekend=5),
        neighbors=(),
        alternative_names=("brick lane", "hoxton", "old street", "spitalfields"),
        common_misspellings=("shordich", "shoreditc", "shore ditch"),
        landmarks=("boxpark", "columbia road flower market"),
    ),
    Area(
        name="Camden",
        coordinates=LatLng(lat=51.5390, lng=-0.1426),
        characteristics=("alternative", "lively", "eclectic", "busy", "music"),
        popular_for=("markets", "live music", "street food", "bars", "vintage shopping"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=4, weekend=5),
        neighbors=("King's Cross", "Marylebone"),
        alternative_names=("camden town", "chalk farm", "primrose hill"),
        common_misspellings=("camdem", "camdon"),
        landmarks=("camden market", "camden lock", "roundhouse"),
    ),
    Area(
        name="Canary Wharf",
        coordinates=LatLng(lat=51.5054, lng=-0.0235),
        characteristics=("business", "modern", "corporate", "waterfront", "quiet"),
        popular_for=("business lunch", "after-work drinks", "restaurants", "shopping"),
        crowd_levels=CrowdLevels(morning=4, afternoon=4, evening=3, weekend=1),
        neighbors=(),
        alternative_names=("docklands", "isle of dogs"),
        common_misspellings=("canary warf", "canary whar", "canarywharf"),
        landmarks=("one canada square", "crossrail place"),
    ),
    Area(
        name="South Bank",
        coordinates=LatLng(lat=51.5055, lng=-0.1160),
        characteristics=("cultural", "riverside", "touristy", "lively", "scenic"),
        popular_for=("theatre", "galleries", "river walks", "food market", "culture"),
        crowd_levels=CrowdLevels(morning=2, afternoon=4, evening=4, weekend=5),
        neighbors=("Covent Garden", "Westminster"),
        alternative_names=("southbank", "waterloo", "bankside"),
        common_misspellings=("south bnak",),
        landmarks=("london eye", "tate modern", "borough market", "national theatre"),
    ),
    Area(
        name="Westminster",
        coordinates=LatLng(lat=51.4995, lng=-0.1248),
        characteristics=("historic", "touristy", "iconic", "governmental"),
        popular_for=("sightseeing", "landmarks", "history", "parks", "museums"),
        crowd_levels=CrowdLevels(morning=3, afternoon=5, evening=3, weekend=5),
        neighbors=("South Bank", "Mayfair", "Covent Garden"),
        alternative_names=("whitehall", "st james's", "trafalgar square"),
        common_misspellings=("westminister", "westmister"),
        landmarks=("big ben", "westminster abbey", "buckingham palace", "national gallery"),
    ),
    Area(
        name="King's Cross",
        coordinates=LatLng(lat=51.5308, lng=-0.1238),
        characteristics=("modern", "regenerated", "creative", "busy"),
        popular_for=("restaurants", "coffee", "shopping", "bars", "canal walks"),
        crowd_levels=CrowdLevels(morning=4, afternoon=3, evening=3, weekend=3),
        neighbors=("Bloomsbury", "Camden"),
        alternative_names=("kings cross", "granary square", "coal drops yard", "st pancras"),
        common_misspellings=("kings x", "kingscross"),
        landmarks=("british library",),
    ),
)

# (walking, transit, driving) minutes, looked up in both directions.
TRAVEL_TABLE = {
    ("canary wharf", "mayfair"): (90, 25, 20, "transit"),
    ("canary wharf", "soho"): (85, 22, 18, "transit"),
    ("canary wharf", "shoreditch"): (50, 15, 12, "transit"),
    ("canary wharf", "covent garden"): (80, 20, 18, "transit"),
    ("mayfair", "soho"): (10, 5, 8, "walk"),
    ("mayfair", "covent garden"): (15, 8, 10, "walk"),
    ("mayfair", "shoreditch"): (45, 18, 15, "transit"),
    ("soho", "covent garden"): (8, 5, 8, "walk"),
    ("soho", "shoreditch"): (35, 15, 12, "transit"),
    ("shoreditch", "covent garden"): (30, 12, 10, "transit"),
}

TRANSIT_LINES = {
    ("canary wharf", "mayfair"): (("Jubilee",), 0),
    ("canary wharf", "soho"): (("Jubilee", "Central"), 1),
    ("canary wharf", "shoreditch"): (("DLR", "Overground"), 1),
    ("mayfair", "shoreditch"): (("Central",), 0),
    ("soho", "shoreditch"): (("Central",), 0),
}
