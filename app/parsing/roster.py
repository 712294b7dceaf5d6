"""
Parse team roster responses from Yahoo Fantasy API.

Source endpoint:
    team/{team_key}/roster

Shape (abridged):
    fantasy_content.team = [[...team fragments...], {roster: {"0": {players: {...}}, ...}}]
    players["0"].player = [[{player_key}, {player_id}, {name: {full}}, ...], {selected_position: ...}]
"""

from typing import Any, Dict, List, Optional

from app.models import Player
from app.parsing.helpers import as_str, collect_fields, find_in_union, flatten_positions, iter_indexed

PLAYER_FIELDS = (
    "player_key",
    "player_id",
    "name",
    "display_position",
    "headshot",
    "status",
    "editorial_team_abbr",
    "eligible_positions",
)

UNKNOWN_PLAYER_NAME = "Unknown"


def _optional_str(value: Any) -> Optional[str]:
    text = as_str(value)
    return text if text else None


def parse_player(player_wrapper: Any) -> Optional[Player]:
    """
    Parse one entry of a ``players`` indexed object.

    ``player[0]`` is the list of single-key fragments; later elements
    (selected_position, stats, ...) are not needed here.

    Args:
        player_wrapper: {"player": [[...fragments...], ...]}

    Returns:
        Player, or None if the fragments are missing or carry no player_key
    """
    if not isinstance(player_wrapper, dict):
        return None
    player_union = player_wrapper.get("player")
    if not isinstance(player_union, list) or not player_union:
        return None
    fragments = player_union[0]
    if not isinstance(fragments, list):
        return None

    fields = collect_fields(fragments, PLAYER_FIELDS)

    player_key = as_str(fields.get("player_key"))
    if not player_key:
        return None

    name = fields.get("name")
    full_name = as_str(name.get("full")) if isinstance(name, dict) else ""

    headshot = fields.get("headshot")
    headshot_url = _optional_str(headshot.get("url")) if isinstance(headshot, dict) else None

    return Player(
        player_key=player_key,
        player_id=as_str(fields.get("player_id")),
        name=full_name or UNKNOWN_PLAYER_NAME,
        position=as_str(fields.get("display_position")),
        eligible_positions=tuple(flatten_positions(fields.get("eligible_positions"))),
        headshot_url=headshot_url,
        status=_optional_str(fields.get("status")),
        nba_team=_optional_str(fields.get("editorial_team_abbr")),
    )


def parse_roster(raw_data: Dict[str, Any]) -> List[Player]:
    """
    Flatten a team roster response into Player records.

    The roster container always sits at key "0" of the ``roster`` object.
    Malformed player entries are skipped; this never raises.

    Args:
        raw_data: Raw Yahoo API roster response

    Returns:
        List of players in roster order
    """
    players: List[Player] = []

    content = raw_data.get("fantasy_content") if isinstance(raw_data, dict) else None
    if not isinstance(content, dict):
        return players

    roster_wrapper = find_in_union(content.get("team"), "roster")
    if not roster_wrapper:
        return players

    roster = roster_wrapper["roster"]
    slot = roster.get("0") if isinstance(roster, dict) else None
    if not isinstance(slot, dict):
        return players

    for player_wrapper in iter_indexed(slot.get("players")):
        player = parse_player(player_wrapper)
        if player:
            players.append(player)

    return players
