"""Auction bids. Every identifier and the amount are stored encrypted."""

from typing import Any, Dict

from solchap.crypto.gateway import CryptoGateway
from solchap.dal.record_store import RecordStore
from solchap.events.catalog import DetailType, EventSource
from solchap.events.notifier import Notification, Notifier
from solchap.handlers.utils.observability import tracer
from solchap.logic.keys import prefixed
from solchap.logic.write_path import RecordWriter, WriteResult
from solchap.models.auctions import PlaceBidRequest
from solchap.models.record import Record


class AuctionService:
    def __init__(self, store: RecordStore, gateway: CryptoGateway, notifier: Notifier):
        self.writer = RecordWriter(store, gateway, notifier)

    @tracer.capture_method
    def place_bid(self, request: PlaceBidRequest) -> WriteResult:
        def build(sealed: Dict[str, Any], ts: str) -> Record:
            return Record(
                partition_key=prefixed('BID', sealed['bidId']),
                sort_key=prefixed('AUCTION', sealed['auctionId']),
                attributes={
                    'bidAmount': sealed['bidAmount'],
                    'userId': sealed['userId'],
                    'createdAt': ts,
                },
                secondary_keys={
                    'GSI1': (prefixed('AUCTION', sealed['auctionId']), prefixed('TIMESTAMP', ts)),
                    'GSI2': (prefixed('USER', sealed['userId']), prefixed('TIMESTAMP', ts)),
                },
            )

        def announce(sealed: Dict[str, Any], item: Dict[str, Any]) -> Notification:
            return Notification(
                action='PLACE_BID',
                detail_type=DetailType.PLACE_BID,
                source=EventSource.AUCTIONS,
                payload={
                    'bidId': sealed['bidId'],
                    'auctionId': sealed['auctionId'],
                    'userId': sealed['userId'],
                    'bidAmount': sealed['bidAmount'],
                    'timestamp': item['createdAt'],
                },
            )

        return self.writer.create(
            sensitive={
                'bidId': request.bid_id,
                'auctionId': request.auction_id,
                'bidAmount': request.bid_amount,
                'userId': request.user_id,
            },
            build=build,
            announce=announce,
            if_absent=True,
            conflict_message='Bid already exists',
        )
