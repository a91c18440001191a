class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    FIND_LEADS = V1 + "/find-leads"
    SEARCH_SIMILAR = V1 + "/search-similar"


class ScoreWeights:
    REGION = 0.40
    INDUSTRY = 0.25
    COMPLETENESS = 0.20
    ACTIVITY = 0.08
    EXPORT = 0.05
    ENGAGEMENT = 0.01
    FRESHNESS = 0.01


class PriorityThresholds:
    HIGH = 75
    MEDIUM = 50
