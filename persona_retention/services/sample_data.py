"""
Sample dataset and download template for the dashboard.

SAMPLE_CSV uses the recommended aggregate shape (user_id, month, text) with
retention left to presence inference.
"""

from typing import Dict, List


SAMPLE_CSV: str = (
    'user_id,month,text\n'
    'u1,2025-09,"Ik reken hierop, maar dit voelt niet veilig."\n'
    'u2,2025-09,"Werkt soms wel soms niet, al vaker gemeld."\n'
    'u3,2025-09,"Zou handig zijn als jullie dit toevoegen."\n'
    'u1,2025-10,"Nog steeds onbetrouwbaar. Klaar mee."\n'
    'u2,2025-10,"Opnieuw foutmeldingen."\n'
    'u3,2025-10,"Ik mis een optie, onduidelijk waarom het zo werkt."\n'
)

TEMPLATE_ROWS: List[Dict[str, str]] = [
    {
        'user_id': 'u123',
        'month': '2025-11',
        'text': '<concatenated monthly messages>',
        'active_next_month': '1',
    },
]
