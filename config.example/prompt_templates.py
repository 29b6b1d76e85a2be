"""LLM prompt templates for quality evaluation, validation and enhancement.

Copy to config/prompt_templates.py to customise the wording.
All templates use str.format() placeholders. Literal braces: {{ and }}.
"""

# ===== System prompts =====

QUALITY_SYSTEM_PROMPT = (
    "You are a content quality evaluator with excellent language detection abilities. "
    "Return only a raw JSON object with rating results - no markdown, no formatting, "
    "no explanations. Be strict about language validation."
)

VALIDATOR_SYSTEM_PROMPT = (
    "You are a meticulous product content validator for a healthcare product catalog. "
    "You judge content strictly against the configured requirements and answer in JSON.\n"
    "You are especially skilled at detecting when content is not in the specified language. "
    "Be strict about language validation while respecting that product names, technical terms, "
    "and registered trademarks may be preserved in their original language."
)

CONTENT_OPTIMIZER_SYSTEM_PROMPT = (
    "You are an expert product content writer who optimises catalog copy for clarity, "
    "accuracy and conversion. You maintain strict adherence to the specified target language, "
    "while preserving product names, trademarks, and technical terms in their original form. "
    "CRITICAL: The goldstandard examples represent our ideal content style and must be "
    "prioritized as your primary reference for style, tone, and structure. Use any provided "
    "product context to ensure consistency across all content fields. When generating new "
    "content for missing fields, create comprehensive, high-quality content that follows all "
    "requirements and format specifications. CLAIMS USAGE: When product claims are provided, "
    "you MUST use them exactly as written without any modifications, paraphrasing, or changes. "
    "Claims can be naturally embedded within sentences, but the claim text itself must remain "
    "completely unchanged. Return only the field content, without commentary."
)


# ===== Quality evaluation =====
# Variables: field_name, requirements, format, whitelist, blacklist, language,
#            examples_block, content

QUALITY_PROMPT = """Evaluate the quality of the following content for a "{field_name}" field according to these requirements:

Requirements: {requirements}
Format: {format}
Whitelist Terms: {whitelist}
Blacklist Terms: {blacklist}
Language: {language}
{examples_block}
Content to evaluate:
{content}

IMPORTANT: First check if the content is actually written in {language} language.
If it contains significant text in other languages (except for brand names and registered trademarks), it should receive a low quality rating.

Please rate the content quality on a scale of 0-100%, where:
- 0-25%: Poor quality, needs complete rewrite (including content in wrong language)
- 26-50%: Below average, requires significant improvement
- 51-75%: Average, could be improved
- 76-90%: Good, needs minor improvements
- 91-100%: Excellent, little to no improvement needed

Return ONLY a JSON object with:
1. rating: numeric score between 0-100
2. remarks: brief explanation for the rating (including language assessment)

For example:
{{"rating": 85, "remarks": "Content is well-structured but could be more engaging."}}"""

# Variables: examples
QUALITY_EXAMPLES_BLOCK = """
Goldstandard Examples:
{examples}
"""


# ===== Validation =====
# Variables: field_name, requirements, format, whitelist, blacklist, language,
#            examples_block, content, language_block, language_criterion

VALIDATION_PROMPT = """Please validate and evaluate the following {field_name} against these requirements and format guidelines:

Requirements: {requirements}
Format: {format}
Whitelist Terms: {whitelist}
Blacklist Terms: {blacklist}
Language: {language}
{examples_block}
Content to validate:
{content}

{language_block}

If goldstandard examples are provided above, also evaluate how well the content aligns with the style, structure and quality of these examples.

Rate the quality of this content on a scale of 0-100% based on:
- How well it meets requirements
- Proper formatting
- Use of required terms
- Avoidance of prohibited terms
{language_criterion}- Alignment with goldstandard examples (if provided)
- Overall clarity and effectiveness

Return ONLY a JSON object with:
1. passed (boolean): whether the content passes validation requirements
2. issues (array of strings): problems found, if any
3. quality (object): with "rating" (number 0-100) and "remarks" (brief explanation for the rating)

Do not include any markdown formatting, code blocks, or backticks. Return the raw JSON object only."""

# Variables: examples
VALIDATION_EXAMPLES_BLOCK = """
===== GOLDSTANDARD EXAMPLES =====
{examples}
"""

# Variables: language, language_rules
LANGUAGE_CHECK_BLOCK = """IMPORTANT: First, verify whether the content is actually written in {language} language.
If it contains terms or phrases in other languages (except for brand names and registered trademarks), it should be marked as failing validation with "Content not in {language} language" as an issue.

For language verification:
{language_rules}

Note that product names, registered trademarks (®, ™) and specific measurements can be preserved in their original form."""

LANGUAGE_CHECK_DISABLED_BLOCK = (
    "IMPORTANT: Language detection is disabled for this field. "
    "Focus only on content quality, requirements, and format validation."
)

# Variables: language
LANGUAGE_CRITERION = "- Whether it's actually in the specified language ({language})\n"


# ===== Enhancement / generation =====
# Variables: field_name, requirements, format, whitelist, blacklist,
#            positive_examples, negative_examples, current_value, language

ENHANCE_PROMPT = """Please enhance the following {field_name} for a product catalog entry.

Target Language: {language}
Requirements: {requirements}
Format: {format}
Terms that must be included: {whitelist}
Terms that must not be used: {blacklist}

Positive Examples (goldstandard, follow their style, tone and structure):
{positive_examples}

Negative Examples (avoid writing like this):
{negative_examples}

Current Value:
{current_value}

Please provide an improved version that satisfies every requirement and format rule, written entirely in {language}. Return only the improved content."""

GENERATE_PROMPT = """Please generate content for the following {field_name} for a product catalog entry.

Target Language: {language}
Requirements: {requirements}
Format: {format}
Terms that must be included: {whitelist}
Terms that must not be used: {blacklist}

Positive Examples (goldstandard, follow their style, tone and structure):
{positive_examples}

Negative Examples (avoid writing like this):
{negative_examples}

Current Value: [MISSING - Please generate new content]

Please generate new content that satisfies every requirement and format rule, written entirely in {language}. Return only the new content."""

# Variables: context_parts
CONTEXT_BLOCK = """
===== PRODUCT CONTEXT =====
The following content from other fields provides context about this product:

{context_parts}

Use this context to ensure the enhanced content is consistent and complementary.
"""

# Variables: claim_texts
CLAIMS_BLOCK = """
===== PRODUCT CLAIMS =====
The following claims are defined for this product and MUST be used exactly as written (can be embedded in sentences):

{claim_texts}

IMPORTANT: Use these claims exactly as provided - do not modify, paraphrase, or change the wording. They can be embedded naturally within sentences but the claim text itself must remain unchanged.
"""

NO_EXAMPLES_PLACEHOLDER = "None provided"
