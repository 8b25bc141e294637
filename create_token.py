"""Print a long-lived bearer token for the given email (default: the seeded admin)."""

import sys

from equipment_reservation_api.app.core.security import create_access_token

email = sys.argv[1] if len(sys.argv) > 1 else "admin@escola.edu.br"
# 365 days, in seconds
token = create_access_token({"sub": email}, expires_delta=365 * 24 * 60 * 60)
print(token)
