"""Built-in provider and model catalog."""

from typing import Optional

from .descriptors import (
    ModelCapabilities,
    ModelDescriptor,
    Pricing,
    ProviderDescriptor,
    ProviderFeatures,
)


def _model(
    id: str,
    name: str,
    description: str,
    context_window: int,
    strengths: list[str],
    best_for: list[str],
    pricing: Optional[tuple[float, float]] = None,
    coding: bool = True,
    vision: bool = False,
    function_calling: bool = False,
    streaming: bool = True,
    json_mode: bool = False,
) -> ModelDescriptor:
    return ModelDescriptor(
        id=id,
        name=name,
        description=description,
        context_window=context_window,
        capabilities=ModelCapabilities(
            coding=coding,
            vision=vision,
            function_calling=function_calling,
            streaming=streaming,
            json_mode=json_mode,
        ),
        strengths=tuple(strengths),
        best_for=tuple(best_for),
        pricing=Pricing(input=pricing[0], output=pricing[1]) if pricing else None,
    )


OPENAI = ProviderDescriptor(
    id="openai",
    name="OpenAI",
    description="GPT series models, strong at general purpose work and coding",
    website="https://openai.com",
    base_url="https://api.openai.com/v1",
    route_prefix="openai",
    features=ProviderFeatures(vision=True, function_calling=True, streaming=True),
    models=(
        _model(
            "gpt-4-turbo-preview",
            "GPT-4 Turbo (128k)",
            "GPT-4 with a 128k context window",
            128_000,
            [
                "Excellent code generation and debugging",
                "Strong reasoning and analysis",
                "Handles complex multi-step tasks",
            ],
            ["Complex coding tasks", "Architecture design", "Code reviews", "API design"],
            pricing=(10, 30),
            vision=True,
            function_calling=True,
            json_mode=True,
        ),
        _model(
            "gpt-4-vision-preview",
            "GPT-4 Vision",
            "GPT-4 for analyzing images, screenshots and designs",
            128_000,
            ["Analyze UI/UX designs", "Understand diagrams and charts", "Review visual layouts"],
            ["UI/UX analysis", "Screenshot to code conversion", "Visual debugging", "Accessibility reviews"],
            pricing=(10, 30),
            vision=True,
            function_calling=True,
            json_mode=True,
        ),
        _model(
            "gpt-4",
            "GPT-4 (8k)",
            "Original GPT-4 model with 8k context",
            8192,
            ["Highly reliable", "Excellent reasoning", "Strong coding abilities"],
            ["Critical tasks requiring accuracy", "Complex problem solving", "Code generation"],
            pricing=(30, 60),
            function_calling=True,
            json_mode=True,
        ),
        _model(
            "gpt-3.5-turbo",
            "GPT-3.5 Turbo (16k)",
            "Fast and cost-effective model for simpler tasks",
            16_385,
            ["Very fast response times", "Cost-effective", "Good for simple tasks"],
            ["Simple code generation", "Quick explanations", "Boilerplate code", "Testing and prototyping"],
            pricing=(0.5, 1.5),
            function_calling=True,
            json_mode=True,
        ),
    ),
)

ANTHROPIC = ProviderDescriptor(
    id="anthropic",
    name="Anthropic",
    description="Claude models, known for accuracy and coding ability",
    website="https://anthropic.com",
    base_url="https://api.anthropic.com/v1",
    route_prefix="anthropic",
    features=ProviderFeatures(vision=True, function_calling=False, streaming=True),
    models=(
        _model(
            "claude-3-5-sonnet-20241022",
            "Claude 3.5 Sonnet",
            "Most advanced Claude model with improved coding and vision",
            200_000,
            [
                "Best-in-class coding abilities",
                "Superior vision understanding",
                "Excellent at following complex instructions",
            ],
            [
                "Full-stack development",
                "UI/UX implementation",
                "Complex debugging",
                "Code review and optimization",
                "Visual to code conversion",
            ],
            pricing=(3, 15),
            vision=True,
        ),
        _model(
            "claude-3-opus-20240229",
            "Claude 3 Opus",
            "Most capable Claude 3 model for complex reasoning",
            200_000,
            ["Exceptional at code understanding", "Strong architectural reasoning", "Careful and thorough analysis"],
            ["Complex refactoring", "Architecture reviews", "Security analysis", "Code optimization"],
            pricing=(15, 75),
            vision=True,
        ),
        _model(
            "claude-3-haiku-20240307",
            "Claude 3 Haiku",
            "Fast and affordable for simpler tasks",
            200_000,
            ["Very fast responses", "Cost-effective", "Good for simple tasks"],
            ["Quick code snippets", "Simple explanations", "Bulk processing", "Testing"],
            pricing=(0.25, 1.25),
            vision=True,
        ),
    ),
)

GOOGLE = ProviderDescriptor(
    id="google",
    name="Google AI",
    description="Gemini models with strong multimodal capabilities",
    website="https://ai.google.dev",
    base_url="https://generativelanguage.googleapis.com/v1",
    route_prefix="gemini",
    features=ProviderFeatures(vision=True, function_calling=True, streaming=True),
    models=(
        _model(
            "gemini-1.5-pro",
            "Gemini 1.5 Pro",
            "Advanced model with a 1M token context window",
            1_048_576,
            ["Massive context window", "Strong multimodal understanding", "Excellent at analyzing large codebases"],
            ["Entire codebase analysis", "Large document processing", "Video/image analysis", "Cross-file refactoring"],
            pricing=(3.5, 10.5),
            vision=True,
            function_calling=True,
        ),
        _model(
            "gemini-1.5-flash",
            "Gemini 1.5 Flash",
            "Fast multimodal model optimized for speed",
            1_048_576,
            ["Very fast processing", "Cost-effective", "Good multimodal capabilities"],
            ["Quick code generation", "Rapid prototyping", "Bulk image processing", "Real-time applications"],
            pricing=(0.35, 0.53),
            vision=True,
            function_calling=True,
        ),
    ),
)

MISTRAL = ProviderDescriptor(
    id="mistral",
    name="Mistral AI",
    description="Efficient open and closed models",
    website="https://mistral.ai",
    base_url="https://api.mistral.ai/v1",
    route_prefix="mistral",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "mistral-large-latest",
            "Mistral Large",
            "Most capable Mistral model with strong coding abilities",
            32_000,
            ["Strong reasoning", "Good code generation", "Multilingual support"],
            ["Code generation", "Technical analysis", "Multi-language projects", "API development"],
            pricing=(4, 12),
            function_calling=True,
            json_mode=True,
        ),
        _model(
            "codestral-latest",
            "Codestral",
            "Specialized model for code generation and completion",
            32_000,
            ["Optimized for code", "Supports 80+ languages", "Fill-in-the-middle"],
            ["Code completion", "IDE integration", "Code generation", "Multi-language support"],
            pricing=(1, 3),
            function_calling=True,
        ),
    ),
)

GROQ = ProviderDescriptor(
    id="groq",
    name="Groq",
    description="Ultra-fast inference on LPU hardware",
    website="https://groq.com",
    base_url="https://api.groq.com/openai/v1",
    route_prefix="groq",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "llama-3.1-70b-versatile",
            "Llama 3.1 70B",
            "Llama 3.1 served with very low latency",
            131_072,
            ["Extremely fast inference", "Good coding abilities", "Long context"],
            ["Real-time applications", "Interactive coding", "Rapid prototyping"],
            pricing=(0.59, 0.79),
            function_calling=True,
        ),
        _model(
            "llama-3.1-8b-instant",
            "Llama 3.1 8B",
            "Smaller, faster Llama model",
            131_072,
            ["Ultra-fast responses", "Good for simple tasks", "Very low latency"],
            ["Code completion", "Quick fixes", "Simple generation"],
            pricing=(0.05, 0.08),
            function_calling=True,
        ),
    ),
)

DEEPSEEK = ProviderDescriptor(
    id="deepseek",
    name="DeepSeek",
    description="Strong, competitively priced coding models",
    website="https://deepseek.com",
    base_url="https://api.deepseek.com/v1",
    route_prefix="deepseek",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "deepseek-coder",
            "DeepSeek Coder V2",
            "Advanced coding model",
            128_000,
            ["Excellent at coding", "Repository-level understanding", "Fill-in-the-middle"],
            ["Complex coding tasks", "Multi-file projects", "Code completion"],
            pricing=(0.14, 0.28),
            function_calling=True,
        ),
        _model(
            "deepseek-chat",
            "DeepSeek Chat V2",
            "General purpose model with coding abilities",
            128_000,
            ["Good general capabilities", "Strong reasoning", "Cost-effective"],
            ["Code explanation", "Technical discussion", "Documentation"],
            pricing=(0.14, 0.28),
            function_calling=True,
        ),
    ),
)

COHERE = ProviderDescriptor(
    id="cohere",
    name="Cohere",
    description="Enterprise models tuned for retrieval-augmented generation",
    website="https://cohere.com",
    base_url="https://api.cohere.ai/v1",
    route_prefix="cohere",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "command-r-plus",
            "Command R+",
            "Model optimized for RAG and tool use",
            128_000,
            ["Excellent RAG performance", "Strong tool use", "Multilingual"],
            ["Documentation search", "Code explanation", "Technical Q&A"],
            pricing=(3, 15),
            function_calling=True,
        ),
    ),
)

PERPLEXITY = ProviderDescriptor(
    id="perplexity",
    name="Perplexity",
    description="Models with built-in web search",
    website="https://perplexity.ai",
    base_url="https://api.perplexity.ai",
    route_prefix="perplexity",
    features=ProviderFeatures(vision=False, function_calling=False, streaming=True),
    models=(
        _model(
            "llama-3.1-sonar-large-128k-online",
            "Sonar Large (Online)",
            "Model with real-time web search",
            127_072,
            ["Real-time information", "Source citations", "Up-to-date knowledge"],
            ["Latest framework docs", "Current best practices", "Package updates"],
            pricing=(1, 1),
        ),
    ),
)

TOGETHER = ProviderDescriptor(
    id="together",
    name="Together AI",
    description="Open-source models served at scale",
    website="https://together.ai",
    base_url="https://api.together.xyz/v1",
    route_prefix="together_ai",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo",
            "Llama 3.1 70B Turbo",
            "Llama optimized for fast inference",
            131_072,
            ["Fast inference", "Long context", "Good coding abilities"],
            ["Code generation", "Technical writing", "Large context tasks"],
            pricing=(0.88, 0.88),
            function_calling=True,
        ),
        _model(
            "Qwen/Qwen2.5-Coder-32B-Instruct",
            "Qwen 2.5 Coder 32B",
            "Coding model from Alibaba",
            32_768,
            ["Excellent at coding", "Multi-language support"],
            ["Full-stack development", "Code review", "Technical documentation"],
            pricing=(0.5, 0.5),
        ),
    ),
)

XAI = ProviderDescriptor(
    id="xai",
    name="xAI",
    description="Grok models with real-time knowledge",
    website="https://x.ai",
    base_url="https://api.x.ai/v1",
    route_prefix="xai",
    features=ProviderFeatures(vision=False, function_calling=True, streaming=True),
    models=(
        _model(
            "grok-beta",
            "Grok Beta",
            "Model with real-time knowledge",
            131_072,
            ["Real-time information", "Good reasoning"],
            ["Current events coding", "Technical research", "Trending technologies"],
            pricing=(5, 15),
            function_calling=True,
        ),
    ),
)

REPLICATE = ProviderDescriptor(
    id="replicate",
    name="Replicate",
    description="Open-source models run in the cloud",
    website="https://replicate.com",
    base_url="https://api.replicate.com/v1",
    route_prefix="replicate",
    features=ProviderFeatures(vision=False, function_calling=False, streaming=False),
    models=(
        _model(
            "meta/llama-3-70b-instruct",
            "Llama 3 70B Instruct",
            "Instruction-tuned Llama 3",
            8192,
            ["Strong general capabilities", "Good instruction following", "Open source"],
            ["General coding tasks", "Text generation", "Question answering"],
            pricing=(0.65, 2.75),
            streaming=False,
        ),
    ),
)

HUGGINGFACE = ProviderDescriptor(
    id="huggingface",
    name="Hugging Face",
    description="Open model hub served through the Inference API",
    website="https://huggingface.co",
    base_url="https://api-inference.huggingface.co/models",
    route_prefix="huggingface",
    features=ProviderFeatures(vision=False, function_calling=False, streaming=False),
    models=(
        _model(
            "bigcode/starcoder2-15b-instruct-v0.1",
            "StarCoder2 15B",
            "Code-focused model trained on The Stack v2",
            16_384,
            ["Trained on 600+ programming languages", "Strong code completion"],
            ["Code generation", "Code completion", "Multi-language support"],
            pricing=(0.5, 0.5),
            streaming=False,
        ),
    ),
)


BUILTIN_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    OPENAI,
    ANTHROPIC,
    GOOGLE,
    MISTRAL,
    GROQ,
    DEEPSEEK,
    COHERE,
    PERPLEXITY,
    TOGETHER,
    XAI,
    REPLICATE,
    HUGGINGFACE,
)
