"""
Game constants for the Imposter game.

This module contains all constant values used throughout the game,
including topic vocabularies, default settings and result labels.
"""

# Every private chat shares this lobby; group chats use their own chat id
GLOBAL_ROOM_ID = "global"

# Generic categories - sent to the topic provider to get a specific term
CATEGORIES = [
    "Food", "Fruit", "Animal", "Bird", "Fish", "Flower", "Tree", "Vehicle",
    "Sport", "Place", "Household object", "Water", "Fire", "Earth", "Wind",
    "Sun", "Moon", "Temple", "River", "Mountain", "Ocean", "Road", "House",
    "Book", "Music", "Dance", "Restaurant", "Market"
]

# Specific topics - used when the topic provider is disabled or fails
BASE_TOPICS = [
    # Food
    "Grilled meat", "Curry", "Rice noodles", "Rice porridge", "Fish amok",
    "Stir-fried crab", "Fried rice", "Fried noodles", "Morning glory", "Sour soup",
    # Fruit
    "Mango", "Banana", "Papaya", "Pineapple", "Strawberry", "Coconut",
    "Orange", "Durian", "Mangosteen", "Sugar palm fruit",
    # Animals
    "Tiger", "Elephant", "Monkey", "Dog", "Cat", "Cow", "Pig", "Duck",
    "Chicken", "Buffalo",
    # Fish
    "Snakehead fish", "Tilapia", "Catfish", "Carp", "Climbing perch",
    # Birds
    "Crane", "Crow", "Heron", "Peacock", "Owl",
    # Flowers
    "Lotus", "Jasmine", "Rose", "Water lily", "Orchid",
    # Trees
    "Mango tree", "Banana tree", "Coconut tree", "Sugar palm tree", "Papaya tree",
    # Vehicles
    "Motorcycle", "Car", "Bus", "Truck", "Bicycle", "Boat", "Airplane",
    # Sports
    "Football", "Volleyball", "Water polo", "Boxing", "Running", "Swimming",
    # Places
    "Angkor Wat", "Mekong River", "Tonle Sap Lake", "Phnom Penh", "Central Market",
    # Objects
    "Mobile phone", "Computer", "Television", "Refrigerator", "Washing machine",
    "Bag", "Shoes", "Shirt", "Pants", "Hat"
]

# Share of the roster that becomes imposters (minimum 1)
IMPOSTER_RATIO = 0.25

# Defaults applied to new sessions and to sessions migrated from older data
DEFAULT_SETTINGS = {
    'min_players': 4,
    'vote_time_seconds': 120,
    'online_mode': False
}

# Admin-settable limits
SETTINGS_LIMITS = {
    'MIN_VOTE_TIME': 10,     # seconds
    'MAX_VOTE_TIME': 600,    # seconds
    'MIN_PLAYERS': 1,
    'MAX_PLAYERS': 50
}

# Winner types
WINNER_TYPES = {
    'INNOCENTS': 'innocents',
    'IMPOSTERS': 'imposters'
}

# Topic sources, reported in role assignment results and logs
TOPIC_SOURCES = {
    'PROVIDER': 'provider',
    'FALLBACK': 'fallback'
}

# Accepted custom group link prefixes
GROUP_LINK_PREFIXES = ('https://', 'http://')

MAX_BROADCAST_LENGTH = 500
