"""
Streamlit UI for the quote engine.

Features:
- Quote builder with service lines, options and additionals
- Catalog browser (services, tiers, combos, zones)
- Catalog integrity report
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from field_quote.config.logging import configure_logging
from field_quote.config.settings import get_settings
from field_quote.data.catalog_loader import CatalogProvider
from field_quote.data.integrity import check_catalog
from field_quote.engine import (
    ConfigurationError,
    QuoteRequest,
    QuoteResolver,
    RequestLine,
    ValidationError,
)
from field_quote.engine.zone_resolver import ZoneResolver


st.set_page_config(
    page_title="Field Quote",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_provider():
    """Get cached catalog provider."""
    configure_logging()
    return CatalogProvider(get_settings().catalog_root)


provider = get_provider()
settings = get_settings()

# ============================================================================
# SIDEBAR: Tenant and customer location
# ============================================================================
with st.sidebar:
    st.header("📍 Customer Context")

    tenants = provider.tenants()
    if not tenants:
        st.error(f"No catalogs found under {provider.root}")
        st.stop()

    default_index = tenants.index(settings.default_tenant) if settings.default_tenant in tenants else 0
    tenant = st.selectbox("Tenant", tenants, index=default_index)

    try:
        catalog = provider.get(tenant)
    except ConfigurationError as e:
        st.error(f"Catalog error: {e.message}")
        st.stop()

    neighborhood = st.text_input("Neighborhood", value="Centro")

    try:
        zone_match = ZoneResolver(catalog.zones).match(neighborhood)
        zone = zone_match.zone
        st.markdown(f"**Zone:** {zone.name}" + ("" if zone_match.matched else " _(default)_"))
        if zone.requires_quote:
            st.warning("This zone requires a manual quote unless an exception applies")
        if zone_match.is_ambiguous:
            st.warning(f"Neighborhood also claimed by: {', '.join(zone_match.conflicting_zone_ids)}")
    except ConfigurationError as e:
        st.error(e.message)

    st.divider()
    if st.button("🔄 Reload Catalog"):
        provider.reload(tenant)
        st.rerun()


st.title("Field Service Quote")
st.caption(f"Catalog {catalog.tenant} | hash {catalog.catalog_hash} | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["⚡ Quote Builder", "📚 Catalog", "📊 Integrity"])


# ============================================================================
# TAB 1: QUOTE BUILDER
# ============================================================================
with tab1:
    if 'lines' not in st.session_state:
        st.session_state.lines = []

    col1, col2 = st.columns([1.6, 1.4], gap="large")
    services = [s for s in catalog.services if s.active]

    with col1:
        st.subheader("Add Services")
        with st.container(border=True):
            labels = {f"{s.name} ({s.category})": s for s in services}
            picked = st.selectbox("Service", list(labels))
            service = labels[picked]

            selections = []
            for variable in service.variables:
                names = [o.name for o in variable.options]
                if not variable.is_required:
                    names = ["—"] + names
                choice = st.selectbox(variable.name, names, key=f"var_{service.service_id}_{variable.variable_id}")
                for option in variable.options:
                    if option.name == choice:
                        selections.append(option.option_id)

            quantity = st.number_input("Qty", min_value=1, value=1, step=1)
            if st.button("➕ Add Line", type="primary"):
                st.session_state.lines.append({
                    "service_id": service.service_id,
                    "quantity": int(quantity),
                    "selected_option_ids": selections,
                })
                st.rerun()

        if st.session_state.lines:
            st.dataframe(pd.DataFrame(st.session_state.lines), use_container_width=True, hide_index=True)
            if st.button("🗑️ Clear Lines"):
                st.session_state.lines = []
                st.rerun()

        additionals = [a for a in catalog.additionals if a.active]
        chosen_additionals = st.multiselect(
            "Additionals",
            options=[a.additional_id for a in additionals],
            format_func=lambda aid: next(a.name for a in additionals if a.additional_id == aid),
        )

    with col2:
        st.subheader("Quote Summary")
        with st.container(border=True):
            if not st.session_state.lines:
                st.info("Add at least one service line")
            else:
                request = QuoteRequest(
                    neighborhood=neighborhood,
                    lines=tuple(
                        RequestLine(l["service_id"], l["quantity"], tuple(l["selected_option_ids"]))
                        for l in st.session_state.lines
                    ),
                    additional_ids=tuple(chosen_additionals),
                )
                try:
                    quote = QuoteResolver(catalog, settings.tier_policy).resolve(request)
                except ValidationError as e:
                    st.error(f"Invalid request: {e.message}")
                    quote = None
                except ConfigurationError as e:
                    st.error(f"Catalog error: {e.message}")
                    quote = None

                if quote is not None and quote.status == "requires_manual_quote":
                    st.warning(f"**Manual quote required.** {quote.reason}")
                elif quote is not None:
                    m1, m2 = st.columns(2)
                    m1.metric("Total", f"R$ {quote.total:,.2f}")
                    m2.metric("Zone Fee", f"R$ {quote.surcharge:,.2f}")

                    if quote.combo:
                        st.success(f"Combo: **{quote.combo.combo_name}** (R$ {quote.combo.fixed_price:,.2f})")
                    if quote.lines:
                        st.dataframe(pd.DataFrame([{
                            'Service': b.service_name,
                            'Qty': b.quantity,
                            'Source': b.source,
                            'Tier': b.tier.label if b.tier else '',
                            'Total': float(b.line_total),
                        } for b in quote.lines]), use_container_width=True, hide_index=True)
                    for charge in quote.additionals:
                        st.caption(f"+ {charge.name}: R$ {charge.price:,.2f}")
                    for warning in quote.warnings:
                        st.warning(warning)

                if quote is not None:
                    with st.expander("🔍 Resolution Trace"):
                        st.text(quote.get_trace_text())


# ============================================================================
# TAB 2: CATALOG
# ============================================================================
with tab2:
    st.subheader("Services")
    st.dataframe(pd.DataFrame([{
        'ID': s.service_id,
        'Name': s.name,
        'Category': s.category,
        'Base Price': float(s.base_price),
        'Tiers': ", ".join(f"{t.label}: {t.price_per_unit}" for t in s.tiers),
        'Active': s.active,
    } for s in catalog.services]), use_container_width=True, hide_index=True)

    st.subheader("Combos")
    st.dataframe(pd.DataFrame([{
        'ID': c.combo_id,
        'Name': c.name,
        'Items': ", ".join(f"{i.quantity}x {i.service_id}" for i in c.items),
        'Fixed Price': float(c.fixed_price),
        'Active': c.active,
    } for c in catalog.combos]), use_container_width=True, hide_index=True)

    st.subheader("Zones")
    st.dataframe(pd.DataFrame([{
        'ID': z.zone_id,
        'Name': z.name,
        'Surcharge': float(z.surcharge),
        'Type': z.pricing_type.value,
        'Default': z.is_default,
        'Requires Quote': z.requires_quote,
        'Neighborhoods': len(z.neighborhoods),
    } for z in catalog.zones]), use_container_width=True, hide_index=True)


# ============================================================================
# TAB 3: INTEGRITY
# ============================================================================
with tab3:
    report = check_catalog(catalog)
    if report.valid:
        st.success("✅ Catalog passes all integrity checks")
    for error in report.errors:
        st.error(error)
    for warning in report.warnings:
        st.warning(warning)
