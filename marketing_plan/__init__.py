"""MarketingPlan.ai - Marketing Plan Generation Service.

This service turns a questionnaire into a structured marketing plan:
- Plan records (business context, questionnaire responses, generated content)
- Two-step Claude generation (analysis, then 9-square strategy)
- PDF download and email delivery of completed plans
"""

__version__ = "0.1.0"
