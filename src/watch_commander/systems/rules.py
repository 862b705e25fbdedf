"""
Game balance constants.

Everything the reducers charge, pay or roll lives here so tuning never
touches engine code.
"""

from ..state.schema import MoraleEventType, Rank

# Economy
RECRUIT_COST = 5000
CITY_FUNDING = 10000
GEAR_COST_PER_LEVEL = 1000
CHARGE_COST = 1000
CI_STIPEND = 1500
EVIDENCE_LAB_FEE = 500

# Reputation
FAILURE_REPUTATION_PENALTY = 10
DECLINE_REPUTATION_PENALTY = 5
RELEASE_REPUTATION_PENALTY = 2
CHARGE_REPUTATION_BONUS = 5

# Officer progression
XP_SUCCESS = 10
XP_FAILURE = 3
MORALE_SUCCESS = 5
MORALE_FAILURE = -10
DAILY_MORALE_RECOVERY = 2

# Injuries
INJURY_HEALTH_LOSS = 30
INJURY_HEALTH_FLOOR = 10
INJURY_DAYS_MIN = 3
INJURY_DAYS_MAX = 7
INJURED_DAILY_HEALING = 5
RECOVERY_HEALING = 20

# Custody
EVIDENCE_INTEL_BONUS = 10

# Probabilities rolled by the session
SUSPECT_CAPTURE_CHANCE = 0.6
RANDOM_EVENT_CHANCE = 0.3

# Feeds
NEWS_LIMIT = 20

DISPATCH_OVERLOADED = (
    "Dispatch is currently overloaded. Advance the day to receive new briefings."
)

# (experience threshold, new rank, ranks eligible for it), checked top down
PROMOTIONS: list[tuple[int, Rank, frozenset[Rank]]] = [
    (95, Rank.LIEUTENANT, frozenset(
        {Rank.ROOKIE, Rank.OFFICER, Rank.SENIOR_OFFICER, Rank.SERGEANT}
    )),
    (75, Rank.SERGEANT, frozenset({Rank.ROOKIE, Rank.OFFICER, Rank.SENIOR_OFFICER})),
    (50, Rank.SENIOR_OFFICER, frozenset({Rank.ROOKIE, Rank.OFFICER})),
    (25, Rank.OFFICER, frozenset({Rank.ROOKIE})),
]

# (type, name, description, cost, morale boost, duration, icon)
MORALE_EVENT_CATALOGUE = [
    (MoraleEventType.PIZZA_PARTY, "Pizza Party", "Stacks of boxes in the briefing room.",
     500, 8, "1 shift", "🍕"),
    (MoraleEventType.BBQ, "Station BBQ", "Grill out back, families invited.",
     1500, 12, "1 shift", "🍖"),
    (MoraleEventType.TRAINING_DAY, "Range Day", "Live-fire drills and friendly competition.",
     2500, 10, "1 day", "🎯"),
    (MoraleEventType.AWARDS_CEREMONY, "Awards Ceremony", "Public recognition for the squad.",
     4000, 20, "1 day", "🏅"),
    (MoraleEventType.DAY_OFF, "Rotating Day Off", "Everyone gets a breather.",
     3000, 15, "1 day", "🏖️"),
    (MoraleEventType.TEAM_BUILDING, "Team Building Retreat", "Ropes course and a cabin weekend.",
     6000, 25, "2 days", "🤝"),
]

# (name, starting crime level)
DEFAULT_DISTRICTS = [
    ("Downtown", 35),
    ("Harbor District", 55),
    ("Eastside", 65),
    ("Northgate", 25),
    ("Industrial Park", 45),
]
