"""
Hit.it – SQLAlchemy ORM models package.

Imports all model classes so the app can discover them through a single
``import hitit.models`` before ``Base.metadata.create_all`` runs.
"""

from hitit.models.user import User                                   # noqa: F401
from hitit.models.clip import Clip                                   # noqa: F401
from hitit.models.jam import CollaboratorRole, Jam, JamClip, JamCollaborator  # noqa: F401
from hitit.models.jam_invite import InviteStatus, JamInvite          # noqa: F401
from hitit.models.jam_request import JamRequest, RequestStatus       # noqa: F401
from hitit.models.jam_activity import ActivityType, JamActivity      # noqa: F401
from hitit.models.jam_version import JamVersion                      # noqa: F401
from hitit.models.notification import Notification, NotificationType  # noqa: F401
