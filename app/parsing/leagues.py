"""
Parsing logic for the user -> games -> leagues -> teams response.

Source endpoint:
    users;use_login=1/games;game_keys=nba/leagues/teams

Shape (abridged):
    fantasy_content.users["0"].user = [{guid}, {games: {...}}]
    games["0"].game = [{game_key...}, {leagues: {...}}]
    leagues["0"].league = [{league_key, name, num_teams, season}, {teams: {...}}]
    teams["0"].team = [[{team_key}, {team_id}, {name}, ...]]
"""

from typing import Any, Dict, Iterator, List, Optional

from app.models import League, Team
from app.parsing.helpers import as_int, as_str, collect_fields, iter_indexed

TEAM_FIELDS = ("team_key", "team_id", "name")


def parse_team(team_wrapper: Any) -> Optional[Team]:
    """
    Parse one entry of a ``teams`` indexed object.

    Team data is nested one list deeper than league data: ``team[0]`` is the
    list of single-key fragments.

    Returns:
        Team, or None if no team_key was found
    """
    if not isinstance(team_wrapper, dict):
        return None
    team_union = team_wrapper.get("team")
    if not isinstance(team_union, list) or not team_union:
        return None
    fragments = team_union[0]
    if not isinstance(fragments, list):
        return None

    fields = collect_fields(fragments, TEAM_FIELDS)
    team_key = as_str(fields.get("team_key"))
    if not team_key:
        return None
    return Team(
        team_key=team_key,
        team_id=as_str(fields.get("team_id")),
        name=as_str(fields.get("name")),
    )


def _first_team(league_union: List[Any]) -> Optional[Team]:
    """Return the caller's team from the first ``teams`` wrapper in a league union."""
    for item in league_union:
        if not isinstance(item, dict) or "teams" not in item:
            continue
        for team_wrapper in iter_indexed(item["teams"]):
            team = parse_team(team_wrapper)
            if team:
                return team
        # Only the first teams wrapper is considered
        return None
    return None


def parse_league(league_wrapper: Any) -> Optional[League]:
    """
    Parse one entry of a ``leagues`` indexed object.

    Element 0 of the ``league`` union holds the scalar attributes; any element
    may carry a ``teams`` collection.

    Returns:
        League, or None if the attributes carry no league_key
    """
    if not isinstance(league_wrapper, dict):
        return None
    league_union = league_wrapper.get("league")
    if not isinstance(league_union, list) or not league_union:
        return None

    attrs = league_union[0]
    if not isinstance(attrs, dict):
        return None
    league_key = as_str(attrs.get("league_key"))
    if not league_key:
        return None

    return League(
        league_key=league_key,
        name=as_str(attrs.get("name")),
        num_teams=as_int(attrs.get("num_teams")),
        season=as_str(attrs.get("season")),
        team=_first_team(league_union),
    )


def _union_children(union: Any, key: str) -> Iterator[Any]:
    """Yield the entries of every ``key`` collection found while scanning a field union."""
    if not isinstance(union, list):
        return
    for item in union:
        if isinstance(item, dict) and key in item:
            yield from iter_indexed(item[key])


def parse_leagues(raw_data: Dict[str, Any]) -> List[League]:
    """
    Flatten a users/games/leagues/teams response into League records.

    Order follows the response: ascending index in every indexed object and
    scan order in every field union. Missing branches are skipped; this never raises.

    Args:
        raw_data: Raw Yahoo API response

    Returns:
        List of leagues
    """
    leagues: List[League] = []

    content = raw_data.get("fantasy_content") if isinstance(raw_data, dict) else None
    if not isinstance(content, dict):
        return leagues

    for user_wrapper in iter_indexed(content.get("users")):
        if not isinstance(user_wrapper, dict):
            continue
        for game_wrapper in _union_children(user_wrapper.get("user"), "games"):
            if not isinstance(game_wrapper, dict):
                continue
            for league_wrapper in _union_children(game_wrapper.get("game"), "leagues"):
                league = parse_league(league_wrapper)
                if league:
                    leagues.append(league)

    return leagues
