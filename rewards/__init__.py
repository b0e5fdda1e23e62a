"""
Rewards module for the DIP check-in bot.

Talks to the reward API and turns each token's identify -> balance ->
check-in -> balance sequence into a :class:`TokenOutcome`.

Submodules:
    client: ``RewardClient`` aiohttp client, ``RemoteError``, ``ClaimResponse``.
    processor: ``CheckInBot`` per-token and per-account processing.
    results: ``TokenOutcome``, ``AccountResult``, ``CycleSummary`` and status enums.
"""
