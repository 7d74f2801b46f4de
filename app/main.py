"""
Streamlit Frontend for CONFIA

The screens a small-business owner uses day to day: dashboard,
customers, suppliers, transactions and the assistant.

DESIGN PRINCIPLES:
1. Every page reads from the workspace, never from a backend directly
2. Every add/delete shows its outcome and reloads all data
3. Demo mode is always visible as a banner
4. Receipt scanning only pre-fills the form; the user still saves
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from confia.config import get_settings, validate_all_settings
from confia.models.records import StoreMode, TransactionKind
from confia.orchestrator import AssistantFlow, FinanceWorkspace, create_app_components
from confia.queries import (
    aggregate,
    filter_parties,
    filter_transactions,
    format_currency,
    recent_transactions,
)
from confia.services.auth import AuthError
from confia.services.storage import ConfigurationError
from confia.session import AppSession


# Page configuration
st.set_page_config(
    page_title="CONFIA",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .demo-box {
        padding: 16px;
        background-color: #fef9c3;
        border-radius: 8px;
        border-left: 5px solid #eab308;
        margin-bottom: 16px;
    }
</style>
""", unsafe_allow_html=True)


CATEGORIES = ["Alimentação", "Transporte", "Serviços", "Compras", "Vendas", "Outros"]
KIND_LABELS = {TransactionKind.INCOME: "Entrada", TransactionKind.EXPENSE: "Saída"}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> tuple[FinanceWorkspace, AssistantFlow, AppSession]:
    """Get or create this browser session's components."""
    if "components" not in st.session_state:
        st.session_state.components = create_app_components()
    return st.session_state.components


def show_result(result) -> None:
    if result.success:
        st.success(result.message)
    else:
        st.error(result.message)


def main():
    """Main application entry point."""
    workspace, assistant, session = get_components()

    if session.mode == StoreMode.NONE:
        render_auth_page(session)
        return

    run_async(workspace.ensure_loaded())

    st.sidebar.title("📊 CONFIA")
    st.sidebar.caption(session.display_email)
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navegar para:",
        ["Painel", "Clientes", "Fornecedores", "Lançamentos", "Assistente", "Configurações"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("Sair"):
        session.sign_out()
        st.rerun()

    if session.mode == StoreMode.LOCAL:
        st.markdown("""
        <div class="demo-box">
            <strong>Modo de Demonstração</strong><br/>
            Os dados são salvos localmente. Conecte o Supabase para nuvem.
        </div>
        """, unsafe_allow_html=True)

    for entity in workspace.failed_collections:
        st.warning(
            f"Não foi possível atualizar {entity.value}: "
            f"{workspace.state(entity).error_message}. Exibindo os últimos dados carregados."
        )

    if page == "Painel":
        render_dashboard_page(workspace)
    elif page == "Clientes":
        render_customers_page(workspace)
    elif page == "Fornecedores":
        render_suppliers_page(workspace)
    elif page == "Lançamentos":
        render_transactions_page(workspace, assistant)
    elif page == "Assistente":
        render_assistant_page(workspace, assistant)
    elif page == "Configurações":
        render_settings_page(workspace)


def render_auth_page(session: AppSession):
    """Sign-in form plus the demo-mode entry."""
    st.title("CONFIA")
    st.markdown("Gestão financeira para o seu negócio.")

    if session.remote_configured:
        with st.form("sign_in"):
            email = st.text_input("E-mail")
            password = st.text_input("Senha", type="password")
            submitted = st.form_submit_button("Entrar", type="primary")

        if submitted:
            try:
                session.sign_in(email, password)
                st.rerun()
            except (AuthError, ConfigurationError) as e:
                st.error(f"Falha no login: {e}")
    else:
        st.info("Supabase não está configurado. Use o modo de demonstração.")

    if st.button("Entrar no modo de demonstração"):
        session.enter_offline_mode()
        st.rerun()


def render_dashboard_page(workspace: FinanceWorkspace):
    """KPI cards, income vs expense chart, latest transactions."""
    st.title("Painel de Controle")
    stats = workspace.stats

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Saldo Atual", format_currency(stats.balance))
    col2.metric("Total Entradas", format_currency(stats.total_income))
    col3.metric("Total Saídas", format_currency(stats.total_expense))
    col4.metric("Lucro Líquido", format_currency(stats.net_profit))

    st.subheader("Fluxo Financeiro")
    if stats.total_income == 0 and stats.total_expense == 0:
        st.caption("Sem dados para exibir")
    else:
        st.bar_chart({
            "Entradas": [float(stats.total_income)],
            "Saídas": [float(stats.total_expense)],
        })

    st.subheader("Últimas Transações")
    recent = recent_transactions(workspace.transactions)
    if not recent:
        st.caption("Nenhuma transação registrada.")
    for t in recent:
        sign = "-" if t.kind == TransactionKind.EXPENSE else "+"
        st.markdown(
            f"{t.date.strftime('%d/%m/%Y')} · {t.description or '-'} · "
            f"`{t.category}` · **{sign} {format_currency(t.amount)}**"
        )


def render_customers_page(workspace: FinanceWorkspace):
    """Customer registry."""
    st.title("Clientes")

    with st.expander("Novo Cliente"):
        with st.form("new_customer", clear_on_submit=True):
            name = st.text_input("Nome *")
            tax_id = st.text_input("CPF/CNPJ *")
            phone = st.text_input("Telefone")
            email = st.text_input("E-mail")
            notes = st.text_area("Observações")
            if st.form_submit_button("Salvar", type="primary"):
                show_result(run_async(workspace.add_customer({
                    "name": name, "tax_id": tax_id, "phone": phone,
                    "email": email, "notes": notes,
                })))

    search = st.text_input("Buscar por nome, documento ou e-mail")
    customers = filter_parties(workspace.customers, search)
    if not customers:
        st.caption("Nenhum cliente encontrado.")

    for c in customers:
        col1, col2 = st.columns([6, 1])
        col1.markdown(f"**{c.name}** · {c.tax_id} · {c.phone or '-'} · {c.email or '-'}")
        if col2.button("Excluir", key=f"del_customer_{c.id}"):
            show_result(run_async(workspace.delete_customer(c.id)))
            st.rerun()


def render_suppliers_page(workspace: FinanceWorkspace):
    """Supplier registry."""
    st.title("Fornecedores")

    with st.expander("Novo Fornecedor"):
        with st.form("new_supplier", clear_on_submit=True):
            name = st.text_input("Razão Social / Nome *")
            tax_id = st.text_input("CNPJ *")
            phone = st.text_input("Telefone")
            email = st.text_input("E-mail")
            product = st.text_input("Produto / Serviço")
            if st.form_submit_button("Salvar", type="primary"):
                show_result(run_async(workspace.add_supplier({
                    "name": name, "tax_id": tax_id, "phone": phone,
                    "email": email, "product_or_service": product,
                })))

    search = st.text_input("Buscar por nome, CNPJ ou e-mail")
    suppliers = filter_parties(workspace.suppliers, search)
    if not suppliers:
        st.caption("Nenhum fornecedor encontrado.")

    for s in suppliers:
        col1, col2 = st.columns([6, 1])
        col1.markdown(f"**{s.name}** · {s.tax_id} · {s.product_or_service or '-'}")
        if col2.button("Excluir", key=f"del_supplier_{s.id}"):
            show_result(run_async(workspace.delete_supplier(s.id)))
            st.rerun()


def render_transactions_page(workspace: FinanceWorkspace, assistant: AssistantFlow):
    """Income/expense list with filters and the new-transaction form."""
    st.title("Lançamentos")

    if "prefill" not in st.session_state:
        st.session_state.prefill = {}

    with st.expander("Novo Lançamento", expanded=bool(st.session_state.prefill)):
        receipt = st.file_uploader(
            "Escanear recibo (opcional)",
            type=get_settings().app.supported_formats_list,
        )
        if receipt and st.button("Analisar recibo com IA"):
            with st.spinner("Analisando recibo..."):
                suggestion = run_async(assistant.analyze_receipt(receipt.read()))
            if suggestion is None:
                st.warning("Não foi possível ler o recibo. Preencha os campos manualmente.")
            else:
                st.session_state.prefill = suggestion.model_dump(exclude_none=True)
                st.rerun()

        prefill = st.session_state.prefill
        with st.form("new_transaction", clear_on_submit=True):
            kind = st.selectbox(
                "Tipo",
                options=list(TransactionKind),
                index=list(TransactionKind).index(prefill.get("kind", TransactionKind.EXPENSE)),
                format_func=lambda k: KIND_LABELS[k],
            )
            amount = st.number_input(
                "Valor (R$) *",
                min_value=0.0,
                value=float(prefill.get("amount", 0)),
                step=0.01,
                format="%.2f",
            )
            tx_date = st.date_input("Data *", value=prefill.get("date", date.today()))
            category = st.text_input("Categoria", value=prefill.get("category", "Outros"))
            description = st.text_input("Descrição", value=prefill.get("description", ""))

            if st.form_submit_button("Salvar", type="primary"):
                result = run_async(workspace.add_transaction({
                    "kind": kind,
                    "amount": Decimal(str(amount)),
                    "date": tx_date,
                    "category": category,
                    "description": description,
                }))
                show_result(result)
                if result.success:
                    st.session_state.prefill = {}

    col1, col2 = st.columns([1, 2])
    with col1:
        kind_filter = st.radio(
            "Filtro",
            options=[None, TransactionKind.INCOME, TransactionKind.EXPENSE],
            format_func=lambda k: "Todos" if k is None else KIND_LABELS[k] + "s",
            horizontal=True,
        )
    with col2:
        search = st.text_input("Buscar por descrição ou categoria")

    filtered = filter_transactions(workspace.transactions, kind_filter, search)

    for t in filtered:
        col1, col2 = st.columns([6, 1])
        sign = "-" if t.kind == TransactionKind.EXPENSE else "+"
        col1.markdown(
            f"{t.date.strftime('%d/%m/%Y')} · {t.description or '-'} · `{t.category}` · "
            f"**{sign} {format_currency(t.amount)}**"
        )
        if col2.button("Excluir", key=f"del_transaction_{t.id}"):
            show_result(run_async(workspace.delete_transaction(t.id)))
            st.rerun()

    if not filtered:
        st.caption("Nenhum lançamento encontrado.")
    else:
        totals = aggregate(filtered)
        st.markdown("---")
        st.markdown(
            f"**Total filtrado:** + {format_currency(totals.total_income)} · "
            f"- {format_currency(totals.total_expense)} · "
            f"= {format_currency(totals.balance)}"
        )


def render_assistant_page(workspace: FinanceWorkspace, assistant: AssistantFlow):
    """Chat with the finance assistant."""
    st.title("CONFIA AI")

    if "chat_history" not in st.session_state:
        st.session_state.chat_history = [
            ("assistant", "Olá! Sou o assistente virtual do CONFIA. "
                          "Como posso ajudar nas suas finanças hoje?"),
        ]

    for role, text in st.session_state.chat_history:
        with st.chat_message(role):
            st.markdown(text)

    message = st.chat_input("Pergunte sobre suas finanças...")
    if message and message.strip():
        st.session_state.chat_history.append(("user", message))
        with st.spinner("Digitando..."):
            reply = run_async(
                assistant.ask(message, workspace.stats, workspace.transactions)
            )
        st.session_state.chat_history.append(("assistant", reply))
        st.rerun()


def render_settings_page(workspace: FinanceWorkspace):
    """Connection status and demo data reset."""
    st.title("Configurações")

    session = workspace.session
    status = validate_all_settings()
    services = [
        ("Supabase (Banco de dados e login)", "supabase"),
        ("Gemini (IA)", "gemini"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configurado")
        else:
            st.error(f"❌ {name} - Não configurado")

    st.markdown(f"**Modo atual:** {session.mode.value}")

    if session.mode == StoreMode.LOCAL:
        st.markdown("---")
        if st.button("Apagar dados de demonstração"):
            backend = session.store.backend
            backend.clear()
            run_async(workspace.refresh())
            st.rerun()


if __name__ == "__main__":
    main()
