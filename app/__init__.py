"""
MoodScale Backend Application
"""
