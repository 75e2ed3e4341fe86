"""Journal package: domain core of the HARSI trade journal.

- models.py: enums, order draft, conversation record, wizard boundary types
- risk_calculator.py: derived risk fields and R statistics
- trend_survey.py: survey majority, recommendations, direction gate
- prompts.py / formatting.py: prompt options and message text
- wizard.py: the order wizard state machine
"""

from .risk_calculator import calculate_order_risk, calculate_risk_unit_statistics
from .wizard import OrderWizard

__all__ = ["OrderWizard", "calculate_order_risk", "calculate_risk_unit_statistics"]
