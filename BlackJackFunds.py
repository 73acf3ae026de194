import sys
import time
import random
import matplotlib.pyplot as plt
import pandas as pd

import csv #for csv.DictReader


class ConfigurationError(ValueError):
    """
    Raised when the simulation or the player table is set up with invalid
    values.
    """


#SIMULATION SETTINGS
BET_AMOUNT = 5 #flat bet, same for every player and every round
STARTING_FUNDS = 500
MAX_ROUNDS = None #None plays until a single player has funds left

#name, starting funds, stopping limit
DEFAULT_PLAYERS = [
    ("clara16", STARTING_FUNDS, 16),
    ("bob17", STARTING_FUNDS, 17),
    ("ralph18", STARTING_FUNDS, 18),
    ("nickie20", STARTING_FUNDS, 20),
    ]

#CARDS - no suits, ace counts 1, ten and faces all count 10
LOW_CARDS = list(range(1, 10)) * 4
HIGH_CARDS = [10] * 4 * 4
CARDS = LOW_CARDS + HIGH_CARDS

BLACKJACK = 21

#ROUND / SIMULATION STATUS
WON = "WON"
LOST = "LOST"
OVER = "OVER"
DID_NOT_CONVERGE = "DID NOT CONVERGE"


class BettingStrategy(object):
    """
    Keeps asking for cards while the total is below the stopping limit.
    """
    def __init__(self, stopping_limit):
        self._stopping_limit = stopping_limit

    @property
    def stopping_limit(self):
        return self._stopping_limit

    def hit(self, total):
        return total < self._stopping_limit

    def __repr__(self):
        return "BettingStrategy(%d)" % self._stopping_limit


class Player(object):
    """
    Represent a player at the table
    """
    def __init__(self, funds, strategy, name):
        self.funds = funds
        self.strategy = strategy
        self.name = name

    def __str__(self):
        return "%s: %s" % (self.name, self.funds)

    def bet(self, amount):
        self.funds -= amount

    def earn(self, amount):
        self.funds += amount

    def hit(self, total):
        return self.strategy.hit(total)


def default_players():
    """
    Returns: A fresh list of the default table players.
    """
    return [Player(funds, BettingStrategy(limit), name)
            for name, funds, limit in DEFAULT_PLAYERS]


class PlayerImporter(object):
    """
    Reads the players of a table from a ';' separated file with the columns
    name;funds;stopping_limit
    """
    def __init__(self, player_file):
        self.player_file = player_file

    def import_players(self):
        players = []
        with open(self.player_file, 'r') as player_csv:
            reader = csv.DictReader(player_csv, delimiter = ';')
            for row in reader:
                players.append(self.parse_row(row, reader.line_num))

        return players

    def parse_row(self, row, line):
        name = (row.get('name') or "").strip()
        if not name:
            raise ConfigurationError("%s line %d: missing player name" % (self.player_file, line))
        try:
            funds = int(row.get('funds'))
            limit = int(row.get('stopping_limit'))
        except (TypeError, ValueError):
            raise ConfigurationError("%s line %d: funds and stopping_limit must be integers (%s)" %
                                     (self.player_file, line, name))
        return Player(funds, BettingStrategy(limit), name)
#END IMPORTER


class Deck(object):
    """
    An endless deck: every draw is taken from the full set of CARDS, so draws
    are independent of each other.
    """
    def __init__(self, seed=None, rng=None):
        self.rng = rng if rng is not None else random.Random(seed)
        self.draws = 0

    def draw(self):
        """
        Returns:    One card value between 1 and 10, tens four times as
                    likely as any other value.
        """
        self.draws += 1
        return self.rng.choice(CARDS)


class PlayerHand(object):
    """
    The player's hand, built according to the player's betting strategy.
    """
    @staticmethod
    def generate(player, deck):
        total = deck.draw() + deck.draw()
        #strategy is asked again after every card, never once 21 is reached
        while player.hit(total) and total < BLACKJACK:
            total += deck.draw()
        return total


class DealerHand(object):
    """
    The dealer's hand. The dealer keeps hitting while behind the player and
    not busted.
    """
    @staticmethod
    def generate(player_total, deck):
        #player already at 21 or busted, dealer takes no cards
        if player_total >= BLACKJACK:
            return 0
        total = deck.draw() + deck.draw()
        while total < player_total and total <= BLACKJACK:
            total += deck.draw()
        return total


class Round(object):
    """
    One bet of a single player against the dealer
    """
    def __init__(self, bet_amount, player, deck):
        self.bet_amount = bet_amount
        self.player = player
        self.deck = deck
        self.player_total = None
        self.dealer_total = None
        self.status = ""

    def play(self):
        self.collect_bet()
        self.deal_cards()
        self.resolve_bets()
        return self.status

    def collect_bet(self):
        self.player.bet(self.bet_amount)

    def deal_cards(self):
        self.player_total = PlayerHand.generate(self.player, self.deck)
        self.dealer_total = DealerHand.generate(self.player_total, self.deck)

    def resolve_bets(self):
        if self.player_won():
            self.player.earn(2 * self.bet_amount)
            self.status = WON
        else:
            self.status = LOST

    def player_won(self):
        return self.dealer_total > BLACKJACK or (
            self.player_total <= BLACKJACK and self.dealer_total < self.player_total)


class Log(object):
    """
    Represents a history of the players' funds after each round.
    """
    COLUMNS = ['round', 'name', 'funds', 'strategy']

    def __init__(self):
        self.rows = []

    def __str__(self):
        return str(self.hands)

    def add_round(self, round_no, players):
        for player in players:
            self.rows.append({'round': round_no, 'name': player.name,
                              'funds': player.funds,
                              'strategy': getattr(player.strategy, 'stopping_limit', None)})

    @property
    def hands(self):
        return pd.DataFrame(self.rows, columns=self.COLUMNS)

    def funds_by_round(self):
        """
        Returns: One column of funds per player, indexed by round.
        """
        return self.hands.pivot(index='round', columns='name', values='funds')

    def summary(self):
        """
        Returns: Final and peak funds of each player, and the last round the
        player ended with funds left (-1 if never).
        """
        hands = self.hands
        if hands.empty:
            return pd.DataFrame(columns=['final', 'peak', 'last_round'])
        grouped = hands.groupby('name', sort=False)
        summary = pd.DataFrame({
            'final': grouped['funds'].last(),
            'peak': grouped['funds'].max(),
            })
        summary['last_round'] = [
            hands[(hands['name'] == name) & (hands['funds'] > 0)]['round'].max()
            for name in summary.index]
        summary['last_round'] = summary['last_round'].fillna(-1).astype(int)
        return summary


class Simulation(object):
    """
    Repeated rounds of all players with enough funds, until at most one
    player has money left.
    """
    def __init__(self, bet_amount, players, deck=None, max_rounds=MAX_ROUNDS, verbose=False):
        if isinstance(bet_amount, bool) or not isinstance(bet_amount, int) or bet_amount <= 0:
            raise ConfigurationError("bet amount must be a positive integer, got %r" % (bet_amount,))
        if not players:
            raise ConfigurationError("at least one player is needed")
        if max_rounds is not None and (not isinstance(max_rounds, int) or max_rounds <= 0):
            raise ConfigurationError("max_rounds must be a positive integer or None, got %r" % (max_rounds,))
        self.bet_amount = bet_amount
        self.players = players
        self.deck = deck if deck is not None else Deck()
        self.max_rounds = max_rounds
        self.verbose = verbose
        self.rounds_played = 0
        self.status = ""
        self.history = Log()

    def run(self):
        """
        Returns: OVER once at most one player has funds left, or
                 DID_NOT_CONVERGE if max_rounds were played before that.
        """
        while not self.over():
            if self.max_rounds is not None and self.rounds_played >= self.max_rounds:
                self.status = DID_NOT_CONVERGE
                return self.status
            self.play_round()
        self.status = OVER
        return self.status

    def over(self):
        return len([player for player in self.players if player.funds > 0]) <= 1

    def players_with_funds(self):
        return [player for player in self.players if player.funds >= self.bet_amount]

    def play_round(self):
        self.rounds_played += 1
        if self.verbose:
            print('%s ROUND no. %d %s' % (20 * '#', self.rounds_played, 20 * '#'))
        #eligibility is fixed for the whole pass
        for player in self.players_with_funds():
            game_round = Round(self.bet_amount, player, self.deck)
            status = game_round.play()
            if self.verbose:
                print("%s: %s (p:%d d:%d) funds=%d" % (player.name, status, game_round.player_total,
                                                       game_round.dealer_total, player.funds))
        self.history.add_round(self.rounds_played, self.players)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        players = PlayerImporter(sys.argv[1]).import_players()
    else:
        players = default_players()

    simulation = Simulation(BET_AMOUNT, players, max_rounds=MAX_ROUNDS)
    start_time = time.time()
    status = simulation.run()

    for player in simulation.players:
        print(player)
    print("%s after %d rounds" % (status, simulation.rounds_played))
    print("Took %s time" % (time.time() - start_time))
    print(simulation.history.summary())

    funds = simulation.history.funds_by_round()
    plt.ylabel('funds')
    for name in funds.columns:
        plt.plot(funds.index, funds[name], label=name)
    plt.legend()
    plt.show()
