from . import donors, events, push

__all__ = ["donors", "events", "push"]
