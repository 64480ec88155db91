"""Review queue builder with sibling spacing and deck interleaving."""

import logging
import random

from hashdeck.core.models import Card

logger = logging.getLogger(__name__)


class QueueBuilder:
    """Builds the initial review queue for a session.

    Optionally shuffles and truncates the cards, spaces cloze siblings
    (cards of the same family) apart, and interleaves cards from different
    decks.
    """

    def __init__(
        self,
        shuffle: bool = False,
        card_limit: int | None = None,
        rng: random.Random | None = None,
    ):
        self.shuffle = shuffle
        self.card_limit = card_limit
        self.rng = rng or random.Random()

    def build_queue(self, cards: list[Card]) -> list[Card]:
        """Build an ordered review queue.

        1. Shuffle (if enabled), then apply the card limit.
        2. Interleave by deck.
        3. Maximize distance between cloze siblings.
        """
        queue = list(cards)
        if self.shuffle:
            self.rng.shuffle(queue)
        if self.card_limit is not None:
            queue = queue[: self.card_limit]
        logger.debug(
            "Queue holds %d of %d card(s) (shuffle=%s, limit=%s)",
            len(queue),
            len(cards),
            self.shuffle,
            self.card_limit,
        )

        queue = self._apply_interleaving(queue)
        queue = self._apply_sibling_spacing(queue)
        return queue

    def _apply_sibling_spacing(self, cards: list[Card]) -> list[Card]:
        """Maximize distance between cards of the same cloze family.

        Uses greedy insertion: cards without siblings are placed first to
        create gaps, then each sibling goes where its minimum distance to an
        already placed sibling is largest.
        """
        if len(cards) <= 2:
            return cards

        families: dict[str, int] = {}
        for card in cards:
            if card.family_hash is not None:
                families[card.family_hash] = families.get(card.family_hash, 0) + 1

        def has_siblings(card: Card) -> bool:
            return card.family_hash is not None and families[card.family_hash] > 1

        if not any(has_siblings(card) for card in cards):
            return cards

        result: list[Card] = [card for card in cards if not has_siblings(card)]

        for card in (card for card in cards if has_siblings(card)):
            if not result:
                result.append(card)
                continue

            best_pos = len(result)
            best_min_dist = -1.0

            for pos in range(len(result) + 1):
                min_dist = float("inf")
                for i, placed in enumerate(result):
                    if placed.family_hash == card.family_hash:
                        dist = pos - i if i < pos else i + 1 - pos
                        min_dist = min(min_dist, dist)

                if min_dist > best_min_dist:
                    best_min_dist = min_dist
                    best_pos = pos

            result.insert(best_pos, card)

        return result

    def _apply_interleaving(self, cards: list[Card]) -> list[Card]:
        """Round-robin across decks to avoid clustering cards from one deck."""
        if len(cards) <= 2:
            return cards

        buckets: dict[str, list[Card]] = {}
        for card in cards:
            buckets.setdefault(card.deck_name, []).append(card)

        if len(buckets) <= 1:
            return cards

        result: list[Card] = []
        bucket_lists = list(buckets.values())
        max_len = max(len(b) for b in bucket_lists)

        for i in range(max_len):
            for bucket in bucket_lists:
                if i < len(bucket):
                    result.append(bucket[i])

        return result
