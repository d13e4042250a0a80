"""
Game App - Grocery Guessr

Posters share grocery receipts, other players guess the converted USD total,
and every action feeds points, achievements and the leaderboard.

Architecture:
- Records: GroceryPost, UserProfile, RateLimitRecord (stored in the game store)
- Services: currency, validation, scoring, achievements, rate limiting,
  game state orchestration, leaderboard
- Views: thin DRF handlers over the service layer
- Exceptions: domain exception hierarchy mapped to HTTP statuses
"""
