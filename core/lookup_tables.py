# core/lookup_tables.py
"""
Static heuristic tables used by field extraction, deduplication and scoring.

Everything here is immutable data. The algorithms in core/fields.py,
core/dedup.py and core/scoring.py only read it, so tables can grow without
touching scoring code.
"""
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple


def _freeze(table: dict) -> Mapping[str, Tuple[str, ...]]:
    return MappingProxyType({k: tuple(v) for k, v in table.items()})


# ---------------- Field aliases (ordered: strongest first) ----------------

FIELD_ALIASES: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "company": (
            "company", "company_name", "company name", "companyname",
            "business_name", "business name", "organization", "organisation",
            "firm", "enterprise",
        ),
        "contact": (
            "contact_person", "contact person", "contact_name", "contact name",
            "person", "representative", "owner", "proprietor", "contact", "name",
        ),
        "email": ("email", "e-mail", "e_mail", "email_address", "contact_email", "mail"),
        "phone": (
            "phone", "mobile", "telephone", "tel", "phone_number", "contact_number",
            "contact number", "whatsapp", "cell", "landline",
        ),
        "website": ("website", "web", "url", "site", "homepage", "domain"),
        "industry": (
            "industry", "sector", "business_type", "business type", "category",
            "subcategory", "segment", "products", "product",
        ),
        "region": ("city", "region", "location", "state", "country", "address"),
        "address": ("address", "addr", "street", "location", "area"),
    }
)

# Region scoring inspects these field groups separately (tiers 1.0 / 0.95 / 0.85).
CITY_FIELD_ALIASES: Tuple[str, ...] = ("city", "region", "location", "district", "town")
ADDRESS_FIELD_ALIASES: Tuple[str, ...] = ("address", "addr", "street", "area")
COUNTRY_FIELD_ALIASES: Tuple[str, ...] = ("country", "state", "province", "nation")

ACTIVITY_FIELD_ALIASES: Tuple[str, ...] = (
    "size", "employees", "employee", "staff", "turnover", "revenue",
    "tier", "membership", "member", "level", "type", "activity",
)
ENGAGEMENT_FIELD_ALIASES: Tuple[str, ...] = (
    "status", "engagement", "activity", "membership", "tier", "rating", "response",
)

# Values that mean "nothing here" in hand-filled spreadsheets.
PLACEHOLDER_VALUES: FrozenSet[str] = frozenset(
    {"", "-", "--", "na", "n a", "n/a", "nil", "none", "null", "unknown", "not available", "tbd", "0"}
)

# Trailing legal-form tokens dropped before comparing company names.
CORPORATE_SUFFIXES: FrozenSet[str] = frozenset(
    {
        "pvt", "private", "ltd", "limited", "llc", "inc", "incorporated", "corp",
        "corporation", "co", "company", "plc", "gmbh", "llp", "lp", "pte", "pty",
        "sa", "ag", "bv", "srl", "spa", "opc",
    }
)

# ---------------- Region knowledge ----------------

# canonical city/region -> alternate spellings and historic names (tier 0.88)
CITY_ALIASES: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "mumbai": ("bombay", "navi mumbai", "thane", "bom"),
        "bengaluru": ("bangalore", "blr"),
        "bangalore": ("bengaluru", "blr"),
        "chennai": ("madras", "maa"),
        "kolkata": ("calcutta", "ccu"),
        "delhi": ("new delhi", "ncr", "dilli"),
        "new delhi": ("delhi", "ncr"),
        "gurugram": ("gurgaon",),
        "gurgaon": ("gurugram",),
        "pune": ("poona",),
        "varanasi": ("benares", "banaras", "kashi"),
        "vadodara": ("baroda",),
        "thiruvananthapuram": ("trivandrum",),
        "kochi": ("cochin",),
        "mysuru": ("mysore",),
        "surat": ("suryapur",),
        "ho chi minh city": ("saigon", "hcmc"),
        "new york": ("nyc", "new york city", "manhattan"),
        "los angeles": ("la", "l.a."),
        "dubai": ("dxb",),
        "beijing": ("peking",),
        "guangzhou": ("canton",),
        "yangon": ("rangoon",),
        "dhaka": ("dacca",),
    }
)

# country -> dialing prefixes as they show up in phone columns (tier 0.75)
DIALING_CODES: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "india": ("+91", "0091"),
        "usa": ("+1", "001"),
        "united states": ("+1", "001"),
        "canada": ("+1",),
        "uk": ("+44", "0044"),
        "united kingdom": ("+44", "0044"),
        "china": ("+86", "0086"),
        "germany": ("+49", "0049"),
        "japan": ("+81", "0081"),
        "uae": ("+971", "00971"),
        "united arab emirates": ("+971", "00971"),
        "bangladesh": ("+880",),
        "pakistan": ("+92",),
        "sri lanka": ("+94",),
        "nepal": ("+977",),
        "vietnam": ("+84",),
        "singapore": ("+65",),
        "australia": ("+61",),
        "france": ("+33",),
        "italy": ("+39",),
        "spain": ("+34",),
        "turkey": ("+90",),
        "saudi arabia": ("+966",),
    }
)

# broader region -> places inside it (tier 0.65)
REGION_MEMBERS: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "india": (
            "maharashtra", "gujarat", "rajasthan", "tamil nadu", "karnataka", "kerala",
            "uttar pradesh", "punjab", "haryana", "west bengal", "telangana",
            "andhra pradesh", "madhya pradesh", "bihar", "odisha", "delhi",
            "mumbai", "surat", "ahmedabad", "jaipur", "ludhiana", "tiruppur",
            "kolkata", "chennai", "bengaluru", "bangalore", "hyderabad", "pune",
        ),
        "maharashtra": ("mumbai", "pune", "nagpur", "nashik", "thane", "aurangabad", "bhiwandi"),
        "gujarat": ("ahmedabad", "surat", "vadodara", "rajkot", "jamnagar"),
        "rajasthan": ("jaipur", "jodhpur", "udaipur", "ajmer", "kota", "bikaner"),
        "tamil nadu": ("chennai", "coimbatore", "tiruppur", "madurai", "erode", "salem"),
        "karnataka": ("bengaluru", "bangalore", "mysuru", "mysore", "mangaluru", "hubli"),
        "uttar pradesh": ("lucknow", "kanpur", "noida", "agra", "varanasi", "ghaziabad"),
        "west bengal": ("kolkata", "howrah", "durgapur", "siliguri"),
        "punjab": ("ludhiana", "amritsar", "jalandhar", "mohali"),
        "usa": ("california", "texas", "new york", "florida", "illinois", "new jersey"),
        "united states": ("california", "texas", "new york", "florida", "illinois", "new jersey"),
        "uk": ("england", "scotland", "wales", "london", "manchester", "birmingham"),
        "united kingdom": ("england", "scotland", "wales", "london", "manchester", "birmingham"),
        "uae": ("dubai", "abu dhabi", "sharjah", "ajman"),
        "china": ("guangdong", "zhejiang", "jiangsu", "shanghai", "shenzhen", "guangzhou"),
        "europe": ("germany", "france", "italy", "spain", "netherlands", "belgium", "poland"),
        "middle east": ("uae", "dubai", "saudi arabia", "qatar", "oman", "kuwait", "bahrain"),
    }
)

# short forms people type for countries (tier 0.3 fuzzy/abbreviation)
REGION_ABBREVIATIONS: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "india": ("ind", "bharat"),
        "united states": ("us", "usa", "u.s.", "u.s.a."),
        "usa": ("us", "u.s.", "america"),
        "united kingdom": ("uk", "gb", "britain"),
        "uk": ("gb", "britain", "england"),
        "united arab emirates": ("uae",),
        "uae": ("emirates",),
        "germany": ("de", "deutschland"),
        "china": ("cn", "prc"),
    }
)

# ---------------- Industry knowledge ----------------

# industry -> related terms (0.4 × fraction matched)
INDUSTRY_RELATED_TERMS: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "textile": (
            "fabric", "garment", "apparel", "cotton", "yarn", "weaving", "spinning",
            "clothing", "saree", "sari", "silk", "denim", "knitwear", "hosiery",
        ),
        "garment": ("apparel", "clothing", "fashion", "readymade", "kurti", "shirt", "dress"),
        "agriculture": ("farm", "crop", "seed", "fertilizer", "grain", "rice", "spices", "organic"),
        "food": ("spices", "snacks", "beverage", "dairy", "bakery", "processed", "frozen"),
        "pharmaceutical": ("medicine", "drug", "api", "formulation", "tablet", "healthcare", "generic"),
        "chemical": ("dye", "pigment", "solvent", "resin", "polymer", "specialty", "intermediate"),
        "automotive": ("auto parts", "vehicle", "spare", "engine", "tyre", "components", "oem"),
        "electronics": ("pcb", "component", "semiconductor", "circuit", "led", "cable"),
        "software": ("it services", "saas", "development", "cloud", "erp", "app"),
        "handicraft": ("handmade", "artisan", "decor", "brass", "wooden", "pottery", "gift"),
        "jewellery": ("gold", "silver", "diamond", "gems", "ornament", "imitation"),
        "leather": ("footwear", "bags", "hide", "tannery", "belts", "wallets"),
        "furniture": ("wooden", "sofa", "interior", "cabinet", "home decor"),
        "packaging": ("corrugated", "box", "carton", "pouch", "label", "film"),
        "steel": ("metal", "iron", "pipes", "fabrication", "alloy", "forging"),
        "machinery": ("equipment", "machine", "industrial", "spare parts", "tools"),
    }
)

# industry -> looser synonyms and common misspellings (0.3 × fraction matched)
INDUSTRY_FUZZY_SYNONYMS: Mapping[str, Tuple[str, ...]] = _freeze(
    {
        "textile": ("textiles", "textille", "fabrics", "cloth", "handloom", "mills"),
        "garment": ("garments", "apparels", "wear", "outfits", "ethnic wear"),
        "agriculture": ("agri", "agro", "farming", "agricultural"),
        "food": ("foods", "edible", "fmcg", "grocery"),
        "pharmaceutical": ("pharma", "pharmaceuticals", "medical", "life sciences"),
        "chemical": ("chemicals", "chem", "petrochemical"),
        "automotive": ("auto", "automobile", "motors"),
        "electronics": ("electronic", "electrical", "electricals"),
        "software": ("it", "tech", "technology", "digital"),
        "handicraft": ("handicrafts", "crafts", "handcrafted"),
        "jewellery": ("jewelry", "jewels", "jeweller"),
        "leather": ("leathers", "leather goods"),
        "furniture": ("furnishing", "furnishings"),
        "packaging": ("packing", "packers"),
        "steel": ("steels", "metals", "ss"),
        "machinery": ("machines", "engineering"),
    }
)

# ---------------- Scoring vocabularies ----------------

ACTIVITY_HIGH_TERMS: Tuple[str, ...] = ("large", "enterprise", "500+")
ACTIVITY_MEDIUM_TERMS: Tuple[str, ...] = ("medium", "mid", "100", "50+")
ACTIVITY_PREMIUM_TERMS: Tuple[str, ...] = ("premium", "gold", "tier1", "tier 1", "verified")

ENGAGEMENT_HIGH_TERMS: Tuple[str, ...] = ("active", "high", "premium", "verified")
ENGAGEMENT_MEDIUM_TERMS: Tuple[str, ...] = ("medium", "regular")
ENGAGEMENT_LOW_TERMS: Tuple[str, ...] = ("low", "inactive")

EXPORT_TERMS: Tuple[str, ...] = (
    "export", "exporter", "exports", "import", "international", "overseas",
    "global", "worldwide", "shipping", "iec", "fob", "cif",
)
BUSINESS_TYPE_TERMS: Tuple[str, ...] = (
    "manufacturer", "manufacturing", "supplier", "wholesaler", "wholesale",
    "distributor", "trader", "trading", "factory", "producer", "oem",
)
QUALITY_MARKERS: Tuple[str, ...] = (
    "verified", "certified", "iso", "gst", "trustseal", "trusted", "authentic", "updated",
)
