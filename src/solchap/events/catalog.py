"""
Event sources and detail-types published to the marketplace event bus.

Downstream EventBridge rules match on these exact strings, so they are kept
byte-for-byte stable.
"""

from enum import Enum


class EventSource(str, Enum):
    """Event sources in the system."""

    AUCTIONS = "marketplace.auctions"
    CARDS = "marketplace.cards"
    CARD_REVIEW = "marketplace.card.review"
    CARD_UNCOVER = "marketplace.card.uncover"
    CARD_SCHEMAS = "custom.cardSchemas"
    LISTINGS = "marketplace.listings"
    LISTING_REVIEW = "listing.service"
    LISTING_ERRORS = "custom.listingHandler"
    MARKETPLACE_SYSTEM = "marketplace.system"
    MARKETPLACE_UPDATES = "com.mycompany.marketplace"
    MARKETPLACE_SERVICE = "marketplace.service"
    CATEGORIES = "marketplace.category"
    CATEGORY_SERVICE = "custom.category.service"
    SUBCATEGORIES = "marketplace.subcategory"
    SECTIONS = "marketplace.sections"
    DISPLAY_RULES = "display.rules.update"
    SECTION_ORGANIZER = "section.organizer"
    MESSAGES = "messages.service"
    MESSAGE_TRAFFIC = "aws.messages"
    MESSAGE_FILTERS = "custom.filter.service"
    MEMBERSHIP = "aws.membership"
    AUTH = "auth.service"
    USER_PROFILE = "custom.user.profile"
    NOTIFICATIONS = "notifications.service"


class DetailType(str, Enum):
    """EventBridge detail-types."""

    # Auctions
    PLACE_BID = "PlaceBid"

    # Cards
    CARD_CREATED = "CardCreated"
    CARD_UPDATED = "CardUpdated"
    CARD_REVIEWED = "CardReviewStatusUpdated"
    CARD_UNCOVERED = "CardUncovered"
    CARD_SCHEMA_IMPORTED = "CardSchemaImported"

    # Listings
    VERIFY_LISTING = "VerifyListing"
    LISTING_REVIEWED = "ReviewEvent"
    PROCESSING_ERROR = "ProcessingError"

    # Marketplaces, categories, sections
    MARKETPLACE_CREATED = "MarketplaceCreateEvent"
    MARKETPLACE_UPDATED = "MarketplaceUpdateEvent"
    MARKETPLACE_DELETED = "MarketplaceDeleted"
    CATEGORY_CREATED = "CategoryCreated"
    CATEGORY_UPDATED = "CategoryUpdated"
    CATEGORY_DELETED = "CategoryDeleted"
    SUBCATEGORY_CREATED = "SubcategoryCreated"
    SUBCATEGORY_UPDATED = "SubcategoryUpdated"
    SUBCATEGORY_DELETED = "SubcategoryDeleted"
    SUBCATEGORY_ASSIGNED = "SubcategoryAssigned"
    DISPLAY_RULES_UPDATED = "DisplayRulesUpdated"
    SECTION_UPDATED = "SectionUpdated"

    # Messages
    MESSAGE_CREATED = "MessageCreateEvent"
    MESSAGE_POSTED = "MessagePosted"
    MESSAGE_REPLIED = "ReplyToMessage"
    MESSAGE_REVIEWED = "ReviewEvent"
    MESSAGE_DETAILS = "DetailEvent"
    MESSAGE_SUBJECT_UPDATED = "SubjectUpdated"
    CIRCUMVENTION_CHECKED = "CircumventEvent"
    CONTACT_INFO_FLAGGED = "FilterContactInfo"
    MESSAGE_FILTER_UPDATED = "MessageFilterUpdated"

    # Users and memberships
    MEMBERSHIP_UPGRADED = "UpgradeMembership"
    USER_CREATED = "UserCreateEvent"
    USER_LOGIN = "LoginEvent"
    USER_LOGOUT = "LogoutEvent"
    USER_DELETED = "UserDeleted"
    PROFILE_READ = "Profile Read"

    # Notifications
    TEMPLATE_UPDATED = "TemplateEvent"
