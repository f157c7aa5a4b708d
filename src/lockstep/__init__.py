"""lockstep: Watch-together room synchronization.

Import from subpackages:
    from lockstep.rooms import RoomRegistry, MembershipManager, PlaybackSynchronizer
    from lockstep.server import create_app
"""

__version__ = "0.1.0"
