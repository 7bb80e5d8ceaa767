from queuedesk.models.counter import Counter
from queuedesk.models.ticket import Ticket
from queuedesk.models.status import TicketStatus, TicketStateMachine

__all__ = ["Counter", "Ticket", "TicketStatus", "TicketStateMachine"]
