from typing import Any, Dict, List


DEFAULT_TEAM_ROSTER: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Current User",
        "email": "user@example.com",
        "role": "Sales Manager",
        "department": "Sales",
        "availability": "available",
    },
    {
        "id": 2,
        "name": "John Smith",
        "email": "john@example.com",
        "role": "Sales Rep",
        "department": "Sales",
        "availability": "available",
    },
    {
        "id": 3,
        "name": "Sarah Wilson",
        "email": "sarah@example.com",
        "role": "Account Manager",
        "department": "Sales",
        "availability": "available",
    },
    {
        "id": 4,
        "name": "Mike Johnson",
        "email": "mike@example.com",
        "role": "Sales Rep",
        "department": "Sales",
        "availability": "available",
    },
]
