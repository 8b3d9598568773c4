"""LifeQuest: habit quests, coins and rewards on Telegram."""

__version__ = "0.1.0"
