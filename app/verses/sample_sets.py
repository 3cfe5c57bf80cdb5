"""Starter verse sets given to new users."""

VERSE_SETS = {
    "default": [
        {
            "reference": "John 3:16",
            "text": "For God so loved the world that he gave his one and only Son, that whoever believes in him shall not perish but have eternal life.",
        },
        {
            "reference": "Philippians 4:13",
            "text": "I can do all things through Christ who strengthens me.",
        },
        {
            "reference": "Jeremiah 29:11",
            "text": "For I know the plans I have for you,\" declares the LORD, \"plans to prosper you and not to harm you, plans to give you hope and a future.",
        },
    ],
    "childrens_verses": [
        {
            "reference": "Genesis 1:1",
            "text": "In the beginning God created the heavens and the earth.",
        },
        {
            "reference": "Psalm 119:105",
            "text": "Your word is a lamp for my feet, a light on my path.",
        },
        {
            "reference": "Proverbs 3:5",
            "text": "Trust in the LORD with all your heart and lean not on your own understanding.",
        },
    ],
}

DEFAULT_TRANSLATION = "NIV"


def get_verse_set(key):
    """Verse set by key; unknown or empty keys fall back to the default set."""
    if key and key in VERSE_SETS:
        return VERSE_SETS[key]
    return VERSE_SETS["default"]
