from app.models import ContentRef, MediaKind
from app.schemas import UserOut
from app.store import StoreUnavailable


USER = UserOut(id=1, email="default@soaggtv.com", name="Default User", language="it")
FIGHT_CLUB = ContentRef(tmdb_id=550, media_type=MediaKind.movie)


class FailingBackend:
    """Every store call fails as if the network were down."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise StoreUnavailable(f"{name}: connection refused")
        return fail
