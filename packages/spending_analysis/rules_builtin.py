"""Built-in merchant patterns for Swedish bank statements.

Rows are ``(pattern, category_id, subcategory_id, match_kind, priority)``.
Definition order matters: it breaks ties between rules of equal priority.
"""

from __future__ import annotations

type BuiltinRuleRow = tuple[str, str, str, str, int]

BUILTIN_RULE_ROWS: tuple[BuiltinRuleRow, ...] = (
    # Streaming
    ("NETFLIX", "entertainment", "streaming", "contains", 90),
    ("SPOTIFY", "entertainment", "streaming", "contains", 90),
    ("HBO", "entertainment", "streaming", "contains", 90),
    ("DISNEY", "entertainment", "streaming", "contains", 90),
    ("VIAPLAY", "entertainment", "streaming", "contains", 90),
    # Software and cloud
    ("GOOGLE ONE", "subscriptions", "software", "contains", 85),
    ("APPLE COM/BI", "subscriptions", "software", "contains", 85),
    ("GOOGLE GSUIT", "subscriptions", "software", "contains", 85),
    ("GOOGLE GOOG", "subscriptions", "software", "contains", 85),
    ("GOOGLE PLAY", "entertainment", "gaming", "contains", 80),
    ("GOOGLE ROBLO", "entertainment", "gaming", "contains", 80),
    # Groceries
    ("WILLYS", "groceries", "supermarket", "contains", 70),
    ("ICA ", "groceries", "supermarket", "contains", 70),
    ("COOP", "groceries", "supermarket", "contains", 70),
    ("LIDL", "groceries", "supermarket", "contains", 70),
    ("HEMKOP", "groceries", "supermarket", "contains", 70),
    ("HEMKÖP", "groceries", "supermarket", "contains", 70),
    ("MAXI", "groceries", "supermarket", "contains", 70),
    ("CITY GROSS", "groceries", "supermarket", "contains", 70),
    ("MATHEM", "groceries", "supermarket", "contains", 70),
    ("PRESSBYRÅ", "groceries", "convenience", "contains", 70),
    ("PRESSBYRAN", "groceries", "convenience", "contains", 70),
    ("7-ELEVEN", "groceries", "convenience", "contains", 70),
    ("CONVINI", "groceries", "convenience", "contains", 70),
    ("MYWAY", "groceries", "convenience", "contains", 70),
    ("MY WAY", "groceries", "convenience", "contains", 70),
    ("DIREKTEN", "groceries", "convenience", "contains", 70),
    ("QUICKSHOPS", "groceries", "convenience", "contains", 70),
    ("SYSTEMBOLAGE", "groceries", "alcohol", "contains", 75),
    # Transportation
    ("CIRCLE K", "transportation", "fuel", "contains", 70),
    ("OKQ8", "transportation", "fuel", "contains", 70),
    ("PREEM", "transportation", "fuel", "contains", 70),
    ("ST1 ", "transportation", "fuel", "starts_with", 70),
    ("SHELL", "transportation", "fuel", "contains", 70),
    ("EASYPARK", "transportation", "parking", "contains", 75),
    ("AIMO PARK", "transportation", "parking", "contains", 75),
    ("AIMO AIMO P", "transportation", "parking", "contains", 75),
    ("PARKMAN", "transportation", "parking", "contains", 75),
    ("P-SERVICE", "transportation", "parking", "contains", 75),
    ("PARKERINGSSERVICE", "transportation", "parking", "contains", 75),
    ("SL", "transportation", "public_transit", "exact", 90),
    ("SL ", "transportation", "public_transit", "starts_with", 80),
    ("AB STORSTOCK", "transportation", "public_transit", "contains", 80),
    ("SJ PENDELTAG", "transportation", "public_transit", "contains", 80),
    ("UBER", "transportation", "taxi", "contains", 75),
    ("BOLT EU", "transportation", "taxi", "contains", 75),
    ("TAXI", "transportation", "taxi", "contains", 60),
    ("FORDONSSKATT", "transportation", "vehicle_tax", "contains", 85),
    ("TRÄNGSELSKATT", "transportation", "vehicle_tax", "contains", 85),
    ("TRANGSELSKATT", "transportation", "vehicle_tax", "contains", 85),
    # Coffee
    ("ESPRESSO HOU", "food_dining", "coffee", "contains", 70),
    ("WAYNES COFFE", "food_dining", "coffee", "contains", 70),
    ("COFFEE HOUSE", "food_dining", "coffee", "contains", 70),
    ("COFFE HOUSE", "food_dining", "coffee", "contains", 70),
    ("STARBUCKS", "food_dining", "coffee", "contains", 70),
    ("FRANKLIN COF", "food_dining", "coffee", "contains", 70),
    ("FIKATERIAN", "food_dining", "coffee", "contains", 70),
    ("GRILLSKA HUS", "food_dining", "coffee", "contains", 70),
    ("LUSSINS KOND", "food_dining", "coffee", "contains", 70),
    ("KLADDKAKAN", "food_dining", "coffee", "contains", 70),
    ("CAFE VAXTHUS", "food_dining", "coffee", "contains", 70),
    ("ELIN CAFE", "food_dining", "coffee", "contains", 70),
    ("CAFE FRESH", "food_dining", "coffee", "contains", 70),
    ("CAFE", "food_dining", "coffee", "contains", 50),
    # Fast food and restaurants
    ("MAX BURGERS", "food_dining", "fast_food", "contains", 75),
    ("MCDONALD", "food_dining", "fast_food", "contains", 75),
    ("SUBWAY", "food_dining", "fast_food", "contains", 75),
    ("BURGER", "food_dining", "fast_food", "contains", 60),
    ("MELINS", "food_dining", "restaurant", "contains", 70),
    ("O LEARYS", "food_dining", "restaurant", "contains", 70),
    ("DADOS KÖK", "food_dining", "restaurant", "contains", 70),
    ("ANTONIOS KOK", "food_dining", "restaurant", "contains", 70),
    ("BONGO KOK", "food_dining", "restaurant", "contains", 70),
    ("STEAKHOUSE", "food_dining", "restaurant", "contains", 70),
    ("KIMCHISTAN", "food_dining", "restaurant", "contains", 70),
    ("58 DIM SUM", "food_dining", "restaurant", "contains", 70),
    ("LA NETA", "food_dining", "restaurant", "contains", 70),
    ("LILLA RUCCOL", "food_dining", "restaurant", "contains", 70),
    ("IL FORNO", "food_dining", "restaurant", "contains", 70),
    ("BROTHER TUCK", "food_dining", "restaurant", "contains", 70),
    ("JACKS BURGER", "food_dining", "restaurant", "contains", 70),
    ("EFENDI", "food_dining", "restaurant", "contains", 70),
    ("NORDISKA BAR", "food_dining", "restaurant", "contains", 70),
    ("RAMA 2 THAI", "food_dining", "restaurant", "contains", 70),
    ("UM THAI", "food_dining", "restaurant", "contains", 70),
    ("GREKISK", "food_dining", "restaurant", "contains", 70),
    ("GREKISKA", "food_dining", "restaurant", "contains", 70),
    ("THE BISHOPS", "food_dining", "restaurant", "contains", 70),
    ("LEBANESE FOO", "food_dining", "restaurant", "contains", 70),
    ("PONG EXPRE", "food_dining", "restaurant", "contains", 70),
    ("SULTAN EN SM", "food_dining", "restaurant", "contains", 70),
    ("BRON RESTAUR", "food_dining", "restaurant", "contains", 70),
    ("GRILLPALATSE", "food_dining", "restaurant", "contains", 70),
    ("RESTAURANG", "food_dining", "restaurant", "contains", 60),
    ("FOODORA", "food_dining", "delivery", "contains", 75),
    ("UBER EATS", "food_dining", "delivery", "contains", 75),
    ("WOLT", "food_dining", "delivery", "contains", 75),
    # Housing
    ("BERGNÄS", "housing", "rent", "contains", 90),
    ("BERGNAS", "housing", "rent", "contains", 90),
    ("LÅN 4704", "housing", "rent", "starts_with", 90),
    ("VATTENFALL", "housing", "utilities", "contains", 85),
    ("TELENOR", "housing", "utilities", "contains", 85),
    ("TELE2", "housing", "utilities", "contains", 85),
    ("COMVIQ", "housing", "utilities", "contains", 85),
    ("HUDDINGE KOMMUN", "housing", "utilities", "contains", 85),
    ("SECTOR ALARM", "housing", "security", "contains", 85),
    ("FASTIGHETSSKÖ", "housing", "maintenance", "contains", 85),
    ("NÄRA&KÄRA", "housing", "maintenance", "contains", 85),
    # Insurance and other subscriptions
    ("TRYGG-HANSA", "subscriptions", "insurance", "contains", 85),
    ("ICA FÖRSÄKR", "subscriptions", "insurance", "contains", 85),
    ("ICA FORSAKR", "subscriptions", "insurance", "contains", 85),
    ("HEDVIG", "subscriptions", "insurance", "contains", 85),
    ("T HEDVIG", "subscriptions", "insurance", "contains", 85),
    ("BLIWA", "subscriptions", "insurance", "contains", 85),
    ("ENKLA VARDAG", "subscriptions", "other", "contains", 85),
    ("BILLMATE", "subscriptions", "other", "contains", 85),
    # Health
    ("KRONANS APOT", "health", "pharmacy", "contains", 75),
    ("APOTEKET", "health", "pharmacy", "contains", 75),
    ("K*APOTEA", "health", "pharmacy", "contains", 75),
    ("KRY", "health", "medical", "contains", 75),
    ("LÄKARE", "health", "medical", "contains", 70),
    # Memberships
    ("UNIONEN", "subscriptions", "membership", "contains", 85),
    ("AKAD.A-KASSA", "subscriptions", "membership", "contains", 85),
    ("SV INGENJ", "subscriptions", "membership", "contains", 85),
    # Donations
    ("LÄKARE UTAN", "donations", "charity", "contains", 80),
    ("LAKARE UTAN", "donations", "charity", "contains", 80),
    ("RÖDA KORSET", "donations", "charity", "contains", 80),
    ("RODA KORSET", "donations", "charity", "contains", 80),
    ("STADSMISSION", "donations", "charity", "contains", 80),
    # Shopping
    ("AMAZON", "shopping", "online", "contains", 70),
    ("LUXEMBOURG", "shopping", "online", "contains", 70),
    ("PAYPAL ALIP", "shopping", "online", "contains", 70),
    ("ETSY", "shopping", "online", "contains", 70),
    ("VINTED", "shopping", "online", "contains", 70),
    ("CDON", "shopping", "online", "contains", 70),
    ("SMARTPHOTO", "shopping", "online", "contains", 70),
    ("ZALANDO", "shopping", "online", "contains", 70),
    ("K*", "shopping", "online", "starts_with", 40),  # Klarna
    ("IKEA", "shopping", "home_goods", "contains", 70),
    ("CLAS OHLSON", "shopping", "home_goods", "contains", 70),
    ("H&M", "shopping", "clothing", "contains", 70),
    ("HM SE", "shopping", "clothing", "starts_with", 70),
    ("LINDEX", "shopping", "clothing", "contains", 70),
    ("KAPPAHL", "shopping", "clothing", "contains", 70),
    ("DEICHMANN", "shopping", "clothing", "contains", 70),
    ("DIN SKO", "shopping", "clothing", "contains", 70),
    ("XXL SPORT", "shopping", "clothing", "contains", 70),
    ("STADIUM", "shopping", "clothing", "contains", 70),
    ("LINDRA SECON", "shopping", "clothing", "contains", 70),
    ("MYRORNA", "shopping", "clothing", "contains", 70),
    ("BAUHAUS", "shopping", "hardware", "contains", 70),
    ("HORNBACH", "shopping", "hardware", "contains", 70),
    ("AUTODOC", "shopping", "hardware", "contains", 70),
    ("EMBLADS BILS", "shopping", "hardware", "contains", 70),
    # Entertainment
    ("FILMSTADEN", "entertainment", "events", "contains", 75),
    ("TICKETMASTER", "entertainment", "events", "contains", 75),
    ("TICKET SE", "entertainment", "events", "contains", 75),
    ("KULTURBILJET", "entertainment", "events", "contains", 75),
    ("ZITA FOLKETS", "entertainment", "events", "contains", 75),
    ("TM TICKETMA", "entertainment", "events", "contains", 75),
    ("K*AXS SWEDEN", "entertainment", "events", "contains", 75),
    ("JESSIES MUSI", "entertainment", "events", "contains", 75),
    ("JUMPYARD", "entertainment", "activities", "contains", 75),
    ("RACEHALL", "entertainment", "activities", "contains", 75),
    ("ACCROPARK", "entertainment", "activities", "contains", 75),
    ("GLOMSTAPOOLE", "entertainment", "activities", "contains", 75),
    ("HESSELBY SLO", "entertainment", "activities", "contains", 75),
    # Children
    ("LEKIA", "children", "toys", "contains", 70),
    ("LEKSAK", "children", "toys", "contains", 60),
    ("BABYLAND", "children", "kids_clothing", "contains", 70),
    ("BARNBUTIKEN", "children", "kids_clothing", "contains", 70),
    # Financial
    ("LÅN ", "financial", "loans", "starts_with", 85),
    ("BANKAKTIEBOL", "financial", "bank_fees", "contains", 70),
    # Income
    ("LÖN", "income", "salary", "contains", 90),
    ("LON", "income", "salary", "contains", 90),
    ("FKASSA", "income", "benefits", "contains", 85),
    ("BARNBDR", "income", "benefits", "contains", 85),
    ("KLARNA REFUN", "income", "refund", "contains", 80),
    # Public services
    ("KOMMUN", "public_services", "municipal_fees", "contains", 75),
    ("KOMMUNAL", "public_services", "municipal_fees", "contains", 75),
    ("STOCKHOLMS STAD", "public_services", "municipal_fees", "contains", 80),
    ("GÖTEBORGS STAD", "public_services", "municipal_fees", "contains", 80),
    ("MALMÖ STAD", "public_services", "municipal_fees", "contains", 80),
    ("PARKERINGSBOT", "public_services", "parking_fines", "contains", 85),
    ("P-BOT", "public_services", "parking_fines", "contains", 85),
    ("KONTROLLAVGIFT", "public_services", "parking_fines", "contains", 85),
    ("FELPARKERINGSAVGIFT", "public_services", "parking_fines", "contains", 85),
    ("SKATTEVERKET", "public_services", "public_fees", "contains", 85),
    ("TRANSPORTSTYRELSEN", "public_services", "public_fees", "contains", 85),
    ("POLISEN", "public_services", "public_fees", "contains", 80),
    ("KRONOFOGDEN", "public_services", "public_fees", "contains", 85),
    ("LANTMÄTERIET", "public_services", "permits", "contains", 80),
    ("MIGRATIONSVERKET", "public_services", "permits", "contains", 80),
)

__all__ = ["BUILTIN_RULE_ROWS", "BuiltinRuleRow"]
