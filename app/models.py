"""
Domain records produced by the Yahoo response decoders and the OAuth flow.

All records are immutable and built fresh per request.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Team:
    """The signed-in user's team within a league."""

    team_key: str
    team_id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class League:
    """A fantasy league, optionally carrying the caller's own team."""

    league_key: str
    name: str
    num_teams: int
    season: str
    team: Optional[Team] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "league_key": self.league_key,
            "name": self.name,
            "num_teams": self.num_teams,
            "season": self.season,
            "team": self.team.to_dict() if self.team else None,
        }


@dataclass(frozen=True)
class Player:
    """A rostered player."""

    player_key: str
    player_id: str
    name: str
    position: str
    eligible_positions: Tuple[str, ...] = field(default_factory=tuple)
    headshot_url: Optional[str] = None
    status: Optional[str] = None
    nba_team: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["eligible_positions"] = list(self.eligible_positions)
        return data


@dataclass(frozen=True)
class OAuthToken:
    """
    Yahoo OAuth token as carried in the ``yahoo_oauth`` cookie.

    ``created_at`` is epoch milliseconds stamped locally when the token was
    obtained; the provider's clock is never used.
    """

    access_token: str
    token_type: str
    expires_in: int
    created_at: int
    refresh_token: Optional[str] = None

    @property
    def expires_at(self) -> int:
        """Epoch milliseconds at which the provider stops accepting the token."""
        return self.created_at + self.expires_in * 1000

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token is not None:
            data["refresh_token"] = self.refresh_token
        data["expires_in"] = self.expires_in
        data["token_type"] = self.token_type
        data["created_at"] = self.created_at
        return data
