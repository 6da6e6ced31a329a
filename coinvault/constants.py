"""
coinvault.constants — Shared Constants
======================================

User-visible messages (pt-BR, as shown by the platform) and ledger
description templates.  Import from here instead of repeating literals in
services, routes, and tests.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------
MSG_NOT_AUTHENTICATED = "Usuário não autenticado"
MSG_NOT_AUTHORIZED = "Acesso não autorizado"

# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------
MSG_INTERNAL = "Erro interno do servidor"
MSG_USER_NOT_FOUND = "Usuário não encontrado"

# ---------------------------------------------------------------------------
# Ledger / stock
# ---------------------------------------------------------------------------
MSG_INSUFFICIENT_BALANCE = "Saldo insuficiente"
MSG_STOCK_EXHAUSTED = "Estoque esgotado"
MSG_AMOUNT_NOT_POSITIVE = "Quantidade deve ser maior que zero"

# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------
MSG_CHALLENGE_NOT_FOUND = "Desafio não encontrado"
MSG_CHALLENGE_UNAVAILABLE = "Desafio não encontrado ou encerrado"
MSG_CHALLENGE_NOT_DIRECT = "Este desafio não aceita participações diretas"
MSG_ALREADY_PARTICIPATED = "Você já participou deste desafio"
MSG_PARTICIPATION_NOT_FOUND = "Participação não encontrada"
MSG_PARTICIPATION_ALREADY_APPROVED = "Participação já aprovada"
MSG_PARTICIPATION_NOT_APPROVED = "Participação não está aprovada"
MSG_NO_PENDING_PARTICIPATIONS = "Nenhuma participação pendente"
MSG_NEGATIVE_COINS = "Quantidade de moedas não pode ser negativa"
MSG_PARTICIPATION_NOT_PENDING = "Participação não está pendente"
MSG_PARTICIPATION_ALREADY_CREDITED = (
    "Participação já recebeu {coins} moedas; não é possível aprovar com valor menor"
)
MSG_INVALID_CHALLENGE_TYPE = "Tipo de desafio inválido"
MSG_NEGATIVE_CHALLENGE_REWARD = "Recompensa do desafio não pode ser negativa"

# ---------------------------------------------------------------------------
# Rewards / claims
# ---------------------------------------------------------------------------
MSG_REWARD_NOT_FOUND = "Recompensa não encontrada"
MSG_CLAIM_NOT_FOUND = "Resgate não encontrado"
MSG_CLAIM_NOT_CANCELLABLE = "Resgate não encontrado ou não pode ser cancelado"
MSG_INVALID_TRANSITION = "Transição de status inválida"
MSG_REWARD_HAS_ACTIVE_CLAIMS = (
    "Não é possível excluir. Existem {count} resgate(s) pendente(s)/em andamento."
)
MSG_NEGATIVE_REWARD_COST = "Custo da recompensa não pode ser negativo"
MSG_NEGATIVE_STOCK = "Estoque não pode ser negativo"
MSG_INVALID_REWARD_TYPE = "Tipo de recompensa inválido"

# ---------------------------------------------------------------------------
# Ledger descriptions
# ---------------------------------------------------------------------------
DESC_CHALLENGE_APPROVED = "Desafio concluído: {title}"
DESC_APPROVAL_REVERTED = "Aprovação revertida pelo admin"
DESC_CLAIM_SPENT = "Resgate: {name}"
DESC_CLAIM_REFUND = "Estorno: {name}"
