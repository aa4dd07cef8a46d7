import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from ta_assistant.models.session import Question

OCR_PROMPT = """Você é um extrator. Transcreva todo o texto legível desta página.
Se houver tabela, retorne também uma versão TSV simples.
Se houver gráfico/figura, descreva título, eixos e tendência.
Seja fiel, preserve a ordem de leitura e insira cabeçalho "Página X"."""

OCR_PAGE_REQUEST = "Processar página {page_number}"

SYSTEM_PROMPT = """
Você é um monitor pedagógico que avalia o trabalho enviado por um aluno por meio de uma conversa.

Regras:

1. Baseie-se somente no texto normalizado do trabalho e no roteiro de perguntas
2. Faça uma pergunta por vez, do nível mais básico ao mais avançado
3. Peça ao aluno que justifique suas respostas com trechos do próprio trabalho
4. Não revele o rationale esperado nem a nota
5. Seja cordial, objetivo e escreva em português
"""

UPLOAD_KICKOFF = "Este é o trabalho do aluno. Por favor, analise e inicie a avaliação."
UPLOAD_FALLBACK = "Arquivo recebido. Podemos iniciar nossa avaliação?"
CHAT_FALLBACK = "Desculpe, não consegui processar sua mensagem."

QUESTION_SCHEMA_EXAMPLE = """{
  "perguntas": [
    {
      "id": "Q1",
      "tipo": "compreensao|aplicacao|critica|verificacao",
      "texto": "…",
      "rationale_esperado": "…"
    }
  ]
}"""

STRICT_JSON_REMINDER = (
    "ATENÇÃO: sua resposta anterior não era JSON válido. Responda SOMENTE com um objeto JSON "
    "no esquema indicado, sem markdown, sem comentários e sem texto antes ou depois."
)


def load_system_prompt(path: Optional[Path] = None) -> str:
    """Read the tutor system prompt from ``path``, or use the built-in one."""
    if path is not None:
        return Path(path).read_text(encoding="utf-8").strip()
    return SYSTEM_PROMPT.strip()


def _format_objectives(assignment: Dict[str, Any]) -> str:
    objectives = assignment.get("objectives")
    if isinstance(objectives, list):
        return "\n".join(f"{idx}. {obj}" for idx, obj in enumerate(objectives, start=1))
    return json.dumps(objectives or {}, ensure_ascii=False)


def _format_criteria(rubric: Dict[str, Any]) -> str:
    criteria = rubric.get("criteria")
    if isinstance(criteria, list):
        return "\n".join(
            f"- ({crit.get('id')}) {crit.get('name')} (peso {crit.get('weight')})"
            for crit in criteria
        )
    return json.dumps(criteria or {}, ensure_ascii=False)


def build_question_master_prompt(
        normalized_text: str,
        assignment: Optional[Dict[str, Any]] = None,
        rubric: Optional[Dict[str, Any]] = None,
        min_questions: int = 10,
        max_questions: int = 14,
) -> str:
    assignment = assignment or {}
    rubric = rubric or {}

    return "\n\n".join([
        "Você é um monitor pedagógico. Crie um roteiro de perguntas avaliativas a partir do trabalho enviado.",
        "Use somente as informações disponíveis no texto normalizado do trabalho. "
        "Não suponha leituras externas nem use web.",
        f"O roteiro deve ter entre {min_questions} e {max_questions} perguntas ordenadas do nível mais básico "
        "ao mais avançado, encadeando conceitos.",
        "Garanta diversidade: inclua questões de recordação/compreensão, aplicação, crítica/verificação e extrapolação.",
        "Para cada pergunta, traga também um campo rationale_esperado com 2 a 4 linhas, destinado apenas ao "
        "professor (não será mostrado ao aluno).",
        "Evite qualquer menção explícita ao rationale nas perguntas e não inclua comentários fora do JSON.",
        "Siga o esquema JSON abaixo e responda exclusivamente com JSON válido:",
        QUESTION_SCHEMA_EXAMPLE,
        "Detalhes da atividade:",
        f"Título: {assignment.get('title') or '(sem título)'}",
        "Objetivos:",
        _format_objectives(assignment),
        "Critérios da rubrica:",
        _format_criteria(rubric),
        "Texto normalizado do trabalho (use-o integralmente como base):",
        normalized_text,
    ])


def build_session_instructions(
        system_prompt: str,
        normalized_text: Optional[str] = None,
        questions: Optional[List["Question"]] = None,
) -> str:
    """System prompt for the evaluation chat: base rules, question script, submission text."""
    sections = [system_prompt.strip()]

    if questions:
        script = "\n".join(
            f"{q.id}. [{q.tipo}] {q.texto}\n"
            f"   Rationale esperado (não mostrar ao aluno): {q.rationale_esperado}"
            for q in questions
        )
        sections.append(f"Roteiro de perguntas:\n{script}")

    if normalized_text:
        sections.append(f"Texto normalizado do trabalho do aluno:\n{normalized_text}")

    return "\n\n".join(sections)
