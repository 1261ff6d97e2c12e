"""
Centralized prompts and context rendering for the parts assistant.

This module keeps every text the model sees in one place:
- the client-facing system prompt (domain, accuracy rules, tone)
- the rendering of tool results into context for the final completion
"""

from typing import List, Optional

from partsbot.models.schemas import (
    CompatibilityResult,
    InstallationResult,
    RetrievedResult,
    TroubleshootingResult,
)

# ============================================================================
# CLIENT-FACING SYSTEM PROMPT
# ============================================================================

SYSTEM_PROMPT = """You are the PartSelect customer service assistant, specialized in helping customers with refrigerator and dishwasher parts and issues.

YOUR CORE CAPABILITIES:
1. Provide information about refrigerator and dishwasher parts, including compatibility, pricing, and availability
2. Assist with troubleshooting common refrigerator and dishwasher problems
3. Offer installation guidance for replacement parts
4. Explain how different parts function within appliances
5. Recommend appropriate parts based on symptoms or issues described

RESPONSE GUIDELINES:
1. Be DIRECT and CONCISE - Answer the user's specific question first before asking for additional information
2. For product queries, provide the most relevant information IMMEDIATELY (price, compatibility, availability)
3. Only ask for model numbers when NECESSARY for compatibility verification
4. Use SIMPLE formatting with minimal bold text - only highlight the most important details
5. Focus on ANSWERING THE QUESTION rather than demonstrating your knowledge

PRODUCT INFORMATION ACCURACY:
- When a specific part number is mentioned, ALWAYS describe it according to its EXACT product type from the database
- NEVER change the product type or category from what is in the database
- If you're uncertain about a specific part, acknowledge the limitation of your information rather than making assumptions

GENERAL KNOWLEDGE ABOUT APPLIANCES:
- You CAN provide general information about how refrigerators and dishwashers work
- You CAN offer general troubleshooting steps for common issues
- You CAN explain the function of different components within these appliances
- You CAN suggest DIY fixes for simple problems that don't require replacement parts

OUT OF SCOPE:
- If a user asks about ANY other appliance like ovens, microwaves, washing machines, stoves, or topics completely unrelated to refrigerators and dishwashers, politely redirect:
  "I'm sorry, I'm specialized in refrigerator and dishwasher information. I'd be happy to help with any questions about those appliances."

CONVERSATION STYLE:
- Be helpful, friendly, and knowledgeable
- Use everyday language, avoiding overly technical terms unless necessary
- For troubleshooting, use step-by-step instructions
- For part information, be precise and factual"""

APOLOGY_MESSAGE = (
    "I'm sorry, I encountered an error while processing your request. "
    "Please try again or rephrase your question."
)

TIMEOUT_MESSAGE = (
    "I'm sorry, that took longer than expected. Please try again in a moment."
)

NO_PRODUCTS_FOUND = "No products found matching the search criteria."


def detected_identifiers_hint(part_number: Optional[str], model_number: Optional[str]) -> Optional[str]:
    """System hint for identifiers the UI extracted from the conversation."""
    lines = []
    if part_number:
        lines.append(f"- Part Number: {part_number}")
    if model_number:
        lines.append(f"- Model Number: {model_number}")
    if not lines:
        return None
    return (
        "I've detected the following information:\n"
        + "\n".join(lines)
        + "\n\nPlease use this information to provide relevant assistance."
    )


def format_products(products: List[RetrievedResult]) -> str:
    """Render retrieved products with explicit product-type guardrails."""
    blocks = ["### RETRIEVED PRODUCT INFORMATION ###"]
    for i, product in enumerate(products, 1):
        if product.in_stock:
            stock = f"In Stock ({product.stock_count} available)"
        else:
            stock = "Out of Stock"
        lines = [
            f"Product {i}:",
            f"PART NUMBER: {product.part_number}",
            f"EXACT PRODUCT TYPE: {product.name}",
            f"CATEGORY: {product.category}",
            f"SUBCATEGORY: {product.subcategory or 'N/A'}",
            f"BRAND: {product.brand}",
            f"PRICE: ${product.price:.2f}",
            f"STOCK STATUS: {stock}",
            f"DESCRIPTION: {product.description}",
        ]
        if product.compatible_models:
            lines.append(f"COMPATIBLE MODELS: {', '.join(product.compatible_models)}")
        lines.append(
            f'IMPORTANT: When referring to part {product.part_number}, you MUST describe it as a '
            f'"{product.name}" and NEVER as any other type of product.'
        )
        blocks.append("\n".join(lines))
    blocks.append("### END PRODUCT INFORMATION ###")
    return "\n\n".join(blocks)


def unconfirmed_model_note(model_number: str, query: str) -> str:
    return (
        f"NOTE: Compatibility with model {model_number} couldn't be confirmed. "
        f'The listed products are our most relevant options for "{query}".'
    )


def no_exact_model_match_note(model_number: str) -> str:
    return (
        f"IMPORTANT: None of the found products explicitly list model {model_number} as compatible. "
        "These are the most relevant parts based on your search, but confirm compatibility before purchasing."
    )


def format_installation(result: InstallationResult) -> str:
    if not result.steps:
        return f"No installation steps found for part {result.part_number}."
    steps = "\n".join(f"{i}. {step}" for i, step in enumerate(result.steps, 1))
    return f"Installation Steps for Part {result.part_number}:\n{steps}"


def format_compatibility(result: CompatibilityResult) -> str:
    verdict = "Compatible" if result.compatible else "Not compatible"
    return f"Compatibility Check Result: {verdict}. {result.details}"


def format_troubleshooting(result: TroubleshootingResult) -> str:
    if not result.tips:
        return "No troubleshooting tips found for this issue."
    tips = "\n".join(f"{i}. {tip}" for i, tip in enumerate(result.tips, 1))
    return f"Troubleshooting Tips:\n{tips}"


def tool_error(tool_name: str, message: str) -> str:
    return f"Error executing {tool_name}: {message}"


def context_message(sections: List[str]) -> str:
    """System message that hands tool results to the final completion."""
    body = "\n\n".join(sections)
    return (
        f"Use the following information to enhance your response:\n\n{body}\n\n"
        "Incorporate this information naturally into your response without explicitly "
        "mentioning that you received this additional context."
    )
