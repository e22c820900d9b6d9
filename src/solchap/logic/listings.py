"""
Listing verification and moderation.

A listing lives under ``LISTING#<enc(listingId)>`` / ``USER#<enc(userId)>``.
Both index sort keys embed the moderation status so marketplaces and
categories can list pending listings cheaply; a review rewrites both.
"""

from typing import Any, Dict

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import DeliveryOutcome, Notification, Notifier
from solchap.handlers.utils.errors import ResourceNotFoundError
from solchap.handlers.utils.observability import logger, tracer
from solchap.logic.keys import prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.listings import ReviewListingRequest, VerifyListingRequest
from solchap.models.record import Record, utc_now_iso

INITIAL_STATUS = 'Pending'


class ListingService:
    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier):
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self.writer = RecordWriter(store, gateway, notifier)

    @tracer.capture_method
    def verify_listing(self, request: VerifyListingRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('LISTING', sealed['listingId']),
                sort_key=prefixed('USER', sealed['userId']),
                attributes={
                    'marketplaceId': sealed['marketplaceId'],
                    'categoryId': sealed['categoryId'],
                    'status': INITIAL_STATUS,
                    'content': {
                        'title': sealed['title'],
                        'description': sealed['description'] or '',
                        'images': sealed['images'],
                    },
                    'metadata': {
                        'price': sealed['price'],
                        'visibility': sealed['visibility'],
                        'creditType': sealed['creditType'] or '',
                        'attributes': sealed['attributes'],
                        'tags': sealed['tags'],
                        'location': sealed['location'] or '',
                        'expiration': sealed['expiration'] or '',
                    },
                    'stats': {'views': 0, 'favorites': 0, 'shares': 0},
                    'createdAt': ts,
                    'updatedAt': ts,
                },
                secondary_keys={
                    'GSI1': (prefixed('MARKETPLACE', sealed['marketplaceId']), f'STATUS#{INITIAL_STATUS}#CREATED#{ts}'),
                    'GSI2': (prefixed('CATEGORY', sealed['categoryId']), f"STATUS#{INITIAL_STATUS}#PRICE#{sealed['price']}"),
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='VERIFY_LISTING',
                detail_type=DetailType.VERIFY_LISTING,
                source=EventSource.LISTINGS,
                payload={
                    'listingId': sealed['listingId'],
                    'userId': sealed['userId'],
                    'marketplaceId': sealed['marketplaceId'],
                    'categoryId': sealed['categoryId'],
                    'status': INITIAL_STATUS,
                    'createdAt': item['createdAt'],
                },
            )

        result = self.writer.create(
            sensitive={
                'listingId': request.listing_id,
                'userId': request.user_id,
                'marketplaceId': request.marketplace_id,
                'categoryId': request.category_id,
                'title': request.title,
                'description': request.description,
                'images': request.images,
                'price': request.price,
                'visibility': request.visibility.value,
                'creditType': request.credit_type,
                'attributes': request.attributes,
                'tags': request.tags,
                'location': request.location,
                'expiration': request.expiration,
            },
            build=build,
            announce=announce,
        )
        logger.info('Listing stored for verification')
        return result

    @tracer.capture_method
    def review_listing(self, request: ReviewListingRequest) -> WriteResult:
        sealed_id = self.gateway.encrypt_text(request.id)
        matches = self.store.query('PK', prefixed('LISTING', sealed_id))
        if not matches:
            raise ResourceNotFoundError('Listing', 'Listing not found')
        listing = matches[0]
        status = request.status.stored
        reviewed_at = utc_now_iso()

        plain = {'status': status, 'reviewedAt': reviewed_at}
        if listing.get('GSI1SK'):
            plain['GSI1SK'] = f"STATUS#{status}#CREATED#{listing.get('createdAt', reviewed_at)}"
        if listing.get('GSI2SK'):
            price = listing.get('metadata', {}).get('price', '')
            plain['GSI2SK'] = f'STATUS#{status}#PRICE#{price}'

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='REVIEW_LISTING',
                detail_type=DetailType.LISTING_REVIEWED,
                source=EventSource.LISTING_REVIEW,
                payload={
                    'listingId': sealed_id,
                    'status': status,
                    'reviewedBy': sealed['reviewedBy'],
                    'reviewedAt': reviewed_at,
                },
            )

        return self.writer.update(
            key={'PK': listing['PK'], 'SK': listing['SK']},
            sensitive={'reviewedBy': request.admin_id, 'notes': request.notes},
            plain=plain,
            announce=announce,
            resource_type='Listing',
        )

    def report_processing_error(self, error: Exception) -> DeliveryOutcome:
        return self.notifier.publish_event(
            DetailType.PROCESSING_ERROR,
            {'error': str(error), 'errorType': type(error).__name__, 'timestamp': utc_now_iso()},
            source=EventSource.LISTING_ERRORS,
        )
