"""Live iRacing standings: merge, rank and rating estimates per tick."""

from standings.cfg import APP_VERSION as __version__
from standings.pipeline import StandingsView, build_standings

__all__ = ["StandingsView", "build_standings", "__version__"]
