from conflicts import client_conflicts
from conflicts import errors
from conflicts import models
from conflicts import scheduling

from conflicts.client_conflicts import (ClientConflictGroup,
                                        ClientConflictIndex, IDENTITY_FIELDS,
                                        find_conflicts,
                                        group_conflicts_by_field,
                                        matching_fields,)
from conflicts.errors import (InvalidIntervalError,)
from conflicts.models import (CalendarCommitment, ClientRecord,
                              CommitmentStatus, validate_interval,)
from conflicts.scheduling import (find_overlaps, intervals_overlap,)

__all__ = ['CalendarCommitment', 'ClientConflictGroup', 'ClientConflictIndex',
           'ClientRecord', 'CommitmentStatus', 'IDENTITY_FIELDS',
           'InvalidIntervalError', 'client_conflicts', 'errors',
           'find_conflicts', 'find_overlaps', 'group_conflicts_by_field',
           'intervals_overlap', 'matching_fields', 'models', 'scheduling',
           'validate_interval']
