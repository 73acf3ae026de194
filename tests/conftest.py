import pytest


class StackedDeck(object):
    """
    Deals a fixed sequence of cards, in order, and fails loudly when asked
    for more cards than were stacked.
    """
    def __init__(self, cards):
        self.cards = list(cards)
        self.draws = 0

    def draw(self):
        assert self.cards, "deck asked for more cards than were stacked"
        self.draws += 1
        return self.cards.pop(0)

    @property
    def remaining(self):
        return len(self.cards)


@pytest.fixture
def stacked_deck():
    return StackedDeck
