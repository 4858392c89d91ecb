"""Prompt templates for plan generation.

Templates are fixed strings with named placeholders ({business_context},
{responses}, {analysis}). Each placeholder is replaced at most once with a
pretty-printed JSON copy of the corresponding input. No other escaping.
"""

import json
from typing import Any, Optional

ANALYSIS_PROMPT = """
You are an expert marketing strategist analyzing a business for comprehensive strategic planning.
Review the following business information and questionnaire responses, then provide a thorough analysis.

Business Context: {business_context}
Questionnaire Responses: {responses}

Provide a comprehensive analysis in JSON format including:
1. businessModelAssessment: Evaluation of the business model strengths and weaknesses
2. marketOpportunity: Analysis of market size, trends, and opportunities
3. competitivePositioning: Assessment of competitive landscape and positioning
4. customerAvatarRefinement: Detailed ideal customer profile based on responses
5. strategicRecommendations: Array of specific, actionable strategic recommendations
6. riskFactors: Array of potential challenges and risks to consider
7. growthPotential: Assessment of growth opportunities and scalability

Structure your analysis professionally with clear insights and actionable observations.
Return only valid JSON without any markdown formatting or additional text.
"""

STRATEGY_PROMPT = """
Based on the business analysis provided, develop a comprehensive marketing strategy that follows the 9-square marketing plan framework.

Business Analysis: {analysis}
Business Context: {business_context}
Questionnaire Responses: {responses}

Generate a complete marketing plan in JSON format with the following structure:

{
  "onePagePlan": {
    "before": {
      "targetMarket": "Detailed description of ideal customer avatar",
      "message": "Clear, compelling unique value proposition",
      "media": ["Top 3 marketing channels with specific rationale"]
    },
    "during": {
      "leadCapture": "Specific lead capture mechanism and compelling offer",
      "leadNurture": "Strategic nurturing sequence and content strategy",
      "salesConversion": "Optimized sales process and key conversion tactics"
    },
    "after": {
      "deliverExperience": "Customer delivery and onboarding strategy",
      "lifetimeValue": "Retention and customer growth strategies",
      "referrals": "Systematic referral generation system"
    }
  },
  "implementationGuide": {
    "executiveSummary": "2-3 paragraph overview of the strategy and expected outcomes",
    "actionPlans": {
      "phase1": "First 30 days action items with specific tasks",
      "phase2": "Days 31-90 action items and initiatives",
      "phase3": "Days 91-180 scaling and optimization activities"
    },
    "timeline": "Detailed implementation timeline with milestones",
    "resources": "Required resources, tools, and budget estimates",
    "kpis": "Key performance indicators and success metrics to track",
    "templates": "Specific templates, scripts, and tools needed"
  },
  "strategicInsights": {
    "strengths": ["Key business strengths to leverage"],
    "opportunities": ["Market opportunities to pursue"],
    "positioning": "Recommended market positioning strategy",
    "competitiveAdvantage": "Unique competitive advantages to emphasize",
    "growthPotential": "Assessment of growth potential and scalability",
    "risks": ["Key risks and mitigation strategies"],
    "investments": ["Recommended marketing investments and priorities"],
    "roi": "Expected return on investment and key metrics"
  }
}

Ensure all recommendations are:
- Industry-specific and relevant
- Actionable with clear next steps
- Budget-conscious based on stated constraints
- Measurable with specific KPIs
- Realistic for the business size and maturity

Return only valid JSON without any markdown formatting or additional text.
"""

SQUARE_PROMPT = """
{instruction}

Business Context: {business_context}
Relevant Responses: {responses}
{previous_analysis}

Provide specific, actionable recommendations for this marketing square in JSON format.
Include implementation steps, success metrics, and industry-specific best practices.
Return only valid JSON without any markdown formatting or additional text.
"""

VALIDATION_PROMPT = """
Review these marketing questionnaire responses and provide feedback:

{responses}

Analyze the responses and provide:
1. suggestions: Array of specific suggestions for improving or clarifying responses
2. completionScore: Numerical score from 0-100 indicating response quality and completeness

Focus on:
- Completeness of responses
- Specificity and actionability
- Clarity of business objectives
- Market understanding depth

Return only valid JSON without any markdown formatting or additional text.
"""

# The 9-square framework: before (1-3), during (4-6), after (7-9)
MARKETING_SQUARES = {
    1: "Target Market",
    2: "Message",
    3: "Media",
    4: "Lead Capture",
    5: "Lead Nurture",
    6: "Sales Conversion",
    7: "Deliver Experience",
    8: "Lifetime Value",
    9: "Referrals",
}

SQUARE_INSTRUCTIONS = {
    1: "Generate detailed target market analysis and customer avatar for marketing square 1",
    2: "Generate comprehensive value proposition and messaging strategy for marketing square 2",
    3: "Generate media channel strategy and reach optimization for marketing square 3",
    4: "Generate lead capture mechanisms and acquisition strategy for marketing square 4",
    5: "Generate lead nurturing and relationship building strategy for marketing square 5",
    6: "Generate sales conversion and closing optimization for marketing square 6",
    7: "Generate customer experience and delivery optimization for marketing square 7",
    8: "Generate lifetime value and growth strategy for marketing square 8",
    9: "Generate referral system and advocacy strategy for marketing square 9",
}


def to_prompt_json(value: Any) -> str:
    """Pretty-printed JSON copy of a prompt input."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def fill_template(template: str, **values: str) -> str:
    """Replace each {name} placeholder once, in keyword order."""
    prompt = template
    for name, value in values.items():
        prompt = prompt.replace("{" + name + "}", value, 1)
    return prompt


def build_analysis_prompt(business_context: dict, responses: dict) -> str:
    return fill_template(
        ANALYSIS_PROMPT,
        business_context=to_prompt_json(business_context),
        responses=to_prompt_json(responses),
    )


def build_strategy_prompt(business_context: dict, responses: dict, analysis: Any) -> str:
    return fill_template(
        STRATEGY_PROMPT,
        analysis=to_prompt_json(analysis),
        business_context=to_prompt_json(business_context),
        responses=to_prompt_json(responses),
    )


def build_square_prompt(
    square: int,
    business_context: dict,
    responses: dict,
    analysis: Optional[Any] = None,
) -> str:
    """Prompt for one square of the 9-square plan.

    Raises:
        KeyError: If square is not 1-9.
    """
    previous = f"Previous Analysis: {to_prompt_json(analysis)}" if analysis else ""
    return fill_template(
        SQUARE_PROMPT,
        instruction=SQUARE_INSTRUCTIONS[square],
        business_context=to_prompt_json(business_context),
        responses=to_prompt_json(responses),
        previous_analysis=previous,
    )


def build_validation_prompt(responses: dict) -> str:
    return fill_template(VALIDATION_PROMPT, responses=to_prompt_json(responses))
