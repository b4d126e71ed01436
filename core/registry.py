# =============================================================================
# core/registry.py - Collection Registry
# =============================================================================
# Static knowledge about where collections live and which ones hold
# business-owned data. Everything that walks "all collections" reads
# from here so the lists stay in one place.
# =============================================================================

# Table holding every generic collection, keyed by (collection, id)
DOCUMENTS_TABLE = "app_documents"

# The privileged entity: typed columns plus a raw snapshot
BUSINESSES = "businesses"

# Collections whose documents carry the owning business id under one of
# these keys (both spellings exist in historical data)
OWNER_FIELDS = ("businessId", "business_id")

# Owner column on dedicated tables
OWNER_COLUMN = "business_id"

# Collections stored in their own table with a first-class owner column
OWNER_COLUMN_TABLES = frozenset({
    "ff_products",
    "ff_categories",
    "ff_extra_groups",
    "ff_extras",
    "ff_orders",
    "ff_campaigns",
    "ff_settings",
    "fb_tables",
    "fb_products",
    "fb_categories",
    "fb_settings",
})

# Every collection that may contain business-owned data (cascade delete)
OWNER_SCOPED_COLLECTIONS = (
    # FastFood
    "ff_products",
    "ff_categories",
    "ff_extra_groups",
    "ff_extras",
    "ff_orders",
    "ff_campaigns",
    "ff_settings",
    # Beauty
    "beauty_services",
    "beauty_categories",
    "beauty_staff",
    "beauty_appointments",
    # Food & Beverage
    "fb_tables",
    "fb_products",
    "fb_categories",
    "fb_orders",
    # Real Estate
    "em_listings",
    "em_consultants",
    # Fitness
    "gym_members",
    "gym_classes",
    "gym_trainers",
    # Clinic
    "clinic_patients",
    "clinic_appointments",
    "clinic_doctors",
    # Shared
    "active_modules",
    "business_staff",
    "staff_permissions",
    "qr_scans",
    "activity_logs",
    "password_reset_tokens",
)

# Collections scanned for asset references by the scan and verify jobs
SCAN_COLLECTIONS = tuple(sorted({
    BUSINESSES,
    "business_owners",
    "industry_definitions",
    "admins",
    "active_modules",
    "qr_scans",
    "activity_logs",
    "business_staff",
    "staff_permissions",
    "password_reset_tokens",
    "ff_products",
    "ff_categories",
    "ff_extra_groups",
    "ff_extras",
    "ff_campaigns",
    "ff_orders",
    "ff_settings",
    "ff_coupons",
    "ff_coupon_usages",
    "ecommerce_products",
    "ecommerce_categories",
    "ecommerce_settings",
    "ecommerce_orders",
    "ecommerce_coupons",
    "ecommerce_customers",
    "fb_products",
    "fb_categories",
    "fb_tables",
    "fb_orders",
    "beauty_services",
    "beauty_categories",
    "beauty_staff",
    "beauty_appointments",
    "hotel_rooms",
    "room_types",
    "room_requests",
    "hotel_requests",
    "room_service_orders",
    "em_listings",
    "em_consultants",
    "em_properties",
    "ec_products",
    "ec_categories",
}))
