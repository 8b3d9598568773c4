"""Game rules: quests, rewards, resets and derived stats."""
