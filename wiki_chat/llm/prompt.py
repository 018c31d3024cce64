# wiki_chat/llm/prompt.py
from typing import List, Sequence

from wiki_chat.wiki.classifier import unique_categories
from wiki_chat.wiki.domains import QueryClassification, RetrievedArticle
from wiki_chat.wiki.retrieval import create_context_string

MAX_CATEGORY_SUGGESTIONS = 5
FALLBACK_CATEGORIES = "Academics, Campus Life, Student Services, Events, Resources"


def get_category_suggestions(available_categories: Sequence[str]) -> str:
    """결과가 없을 때 안내할 카테고리 (없으면 기본 목록)"""
    if not available_categories:
        return FALLBACK_CATEGORIES
    return ", ".join(available_categories[:MAX_CATEGORY_SUGGESTIONS])


def create_system_prompt(
    articles: Sequence[RetrievedArticle],
    classification: QueryClassification,
    available_categories: Sequence[str] = (),
) -> str:
    """검색 문서와 분류 플래그로 시스템 프롬프트 구성"""
    has_results = len(articles) > 0
    sections: List[str] = ["You are a helpful assistant for the TUM Community Platform wiki."]

    if has_results:
        sections.append(
            "Use the wiki articles below to answer. "
            "Always cite sources using: [Article Title](/wiki/articles/slug)"
        )
        sections.append(f"WIKI ARTICLES:\n{create_context_string(articles)}")
    else:
        sections.append("No relevant articles found.")
        sections.append(
            "No articles found. Suggest 2-3 alternative search terms or browse categories: "
            f"{get_category_suggestions(available_categories)}"
        )

    if classification.is_recommendation:
        sections.append(
            "IMPORTANT: The user is asking for article recommendations. Please:\n"
            "1. List 2-5 relevant articles from the provided wiki articles\n"
            "2. Format each as: **[Article Title](/wiki/articles/slug)** - Brief description "
            "(1-2 sentences) [Category: category-name]\n"
            "3. Make descriptions informative and help users understand what each article covers\n"
            "4. Order recommendations by relevance to the user's query\n"
            "5. If articles span multiple categories, highlight this diversity in your recommendations"
        )

    if classification.is_ambiguous:
        options = "\n".join(
            f"- {option.category} (e.g. \"{option.example_title}\")"
            for option in classification.ambiguity_options
        )
        sections.append(
            "IMPORTANT: This query appears ambiguous - it could refer to multiple distinct topics. "
            "Before providing a detailed answer:\n"
            "1. Acknowledge that the query could have multiple interpretations\n"
            "2. List the different categories/topics where relevant information was found\n"
            "3. Ask the user which specific topic they're interested in\n"
            "4. Provide a brief preview of what information is available in each category\n"
            "5. Keep the clarification friendly and concise\n"
            f"Possible interpretations:\n{options}"
        )

    if classification.is_out_of_scope:
        sections.append(
            "IMPORTANT: This query appears to be about non-TUM topics or outside the scope of this wiki. Please:\n"
            "1. Politely acknowledge that the question is outside the scope of the TUM wiki\n"
            "2. Explain that you're specifically designed to help with TUM-related questions\n"
            "3. Suggest relevant TUM-related topics or categories the user might be interested in instead\n"
            "4. Provide 2-3 specific examples of TUM topics you can help with\n"
            f"5. Available categories to suggest: {get_category_suggestions(available_categories)}\n"
            "6. Keep the tone friendly and helpful, not dismissive\n"
            "7. Do not make up an answer to the original question"
        )

    categories = unique_categories(articles)
    if len(categories) > 1:
        sections.append(
            f"NOTE: The articles provided span {len(categories)} different categories: "
            f"{', '.join(categories)}.\n"
            "Make sure to synthesize information from all relevant categories to provide a comprehensive answer.\n"
            "Cite sources from different categories when they contribute to the answer."
        )

    return "\n\n".join(sections)
