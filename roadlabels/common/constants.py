"""Application constants."""

USER_AGENT = "roadlabels/0.3 (+road condition ground truth; contact: configured-email)"
FROST_BASE_URL = "https://frost.met.no"
DEFAULT_STATION_HOLDER = "STATENS VEGVESEN"

ICE_THICKNESS = "road_ice_thickness"
WATER_FILM_THICKNESS = "road_water_film_thickness"
SNOW_THICKNESS = "road_snow_thickness"
ROAD_WEATHER_ELEMENTS = (ICE_THICKNESS, WATER_FILM_THICKNESS, SNOW_THICKNESS)
EXPECTED_UNIT = "mm"

TIME_RESOLUTION = "PT10M"
DRY_CADENCE_HOURS = (0, 6, 12, 18)

COMMANDS = ("resolve", "build")
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "window",
    "event",
    "status",
    "attempt",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
