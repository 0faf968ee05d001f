from datetime import time
from typing import Annotated

from pydantic import PlainSerializer

# Time of day on the wire: accepts "HH:MM" (or "HH:MM:SS"), always emits "HH:MM".
HHMM = Annotated[time, PlainSerializer(lambda t: t.strftime("%H:%M"), return_type=str)]
