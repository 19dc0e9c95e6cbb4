"""Column names of the bulk file, in canonical header order."""

from __future__ import annotations

TYPE = "Type"
STATUS = "Status"
ID = "Id"
PARENT_ID = "Parent Id"
CAMPAIGN = "Campaign"
AD_GROUP = "Ad Group"
CLIENT_ID = "Client Id"
MODIFIED_TIME = "Modified Time"
SYNC_TIME = "Sync Time"
NAME = "Name"
TIME_ZONE = "Time Zone"
BUDGET = "Budget"
BUDGET_TYPE = "Budget Type"
TRACKING_TEMPLATE = "Tracking Template"
KEYWORD = "Keyword"
MATCH_TYPE = "Match Type"
EDITORIAL_STATUS = "Editorial Status"
TARGET = "Target"
OS_NAMES = "OS Names"
BID_ADJUSTMENT = "Bid Adjustment"
DAY = "Day"
FROM_HOUR = "From Hour"
FROM_MINUTE = "From Minute"
TO_HOUR = "To Hour"
TO_MINUTE = "To Minute"
LOCATION_TYPE = "Location Type"
LOCATION = "Location"
PHYSICAL_INTENT = "Physical Intent"
RADIUS = "Radius"
UNIT = "Unit"
LATITUDE = "Latitude"
LONGITUDE = "Longitude"
ERROR = "Error"
ERROR_NUMBER = "Error Number"

CSV_HEADERS: tuple[str, ...] = (
    TYPE,
    STATUS,
    ID,
    PARENT_ID,
    CAMPAIGN,
    AD_GROUP,
    CLIENT_ID,
    MODIFIED_TIME,
    SYNC_TIME,
    NAME,
    TIME_ZONE,
    BUDGET,
    BUDGET_TYPE,
    TRACKING_TEMPLATE,
    KEYWORD,
    MATCH_TYPE,
    EDITORIAL_STATUS,
    TARGET,
    OS_NAMES,
    BID_ADJUSTMENT,
    DAY,
    FROM_HOUR,
    FROM_MINUTE,
    TO_HOUR,
    TO_MINUTE,
    LOCATION_TYPE,
    LOCATION,
    PHYSICAL_INTENT,
    RADIUS,
    UNIT,
    LATITUDE,
    LONGITUDE,
    ERROR,
    ERROR_NUMBER,
)
