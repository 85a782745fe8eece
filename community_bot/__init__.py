"""
Top-level package for the community Discord bot.

This package hosts:
- settings loading and validation (env, .env, optional YAML)
- Discord client, slash commands and event handlers
- the rules, support-channel and welcome features
- scheduler integration for the daily support reset
"""
