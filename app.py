# app.py

from datetime import date

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from agents.crop_doctor import CropDoctorAgent
from agents.farm_advisor import FarmAdvisorAgent
from agents.llm import build_chat_model
from core.activity_manager import ActivityManager
from core.chat_history_manager import ChatHistoryManager
from core.crop_health_manager import CropHealthManager
from core.exceptions import FarmLedgerError
from core.farm_manager import FarmManager
from core.finance_manager import FinanceManager
from core.models import BuyerInfo, FarmLocation
from core.profile_manager import ProfileManager
from tools.geocoding_api import get_coordinates_for_location
from tools.weather_api import fetch_weather_data, format_forecast

ACTIVITY_TYPES = ["sowing", "irrigation", "spraying", "harvesting", "weeding", "fertilizing"]
EXPENSE_CATEGORIES = ["seeds", "fertilizers", "pesticides", "labor", "equipment", "other"]
HEALTH_STATUSES = ["healthy", "diseased", "treated", "recovered"]
LANGUAGES = {"English": "en", "മലയാളം": "ml", "हिंदी": "hi"}

# --- Page & State Configuration ---
st.set_page_config(page_title="Farm Ledger AI", page_icon="🌾", layout="wide")

def initialize_session_state():
    """Initializes all necessary session state variables."""
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "user_id" not in st.session_state:
        st.session_state.user_id = None
    if "farm_id" not in st.session_state:
        st.session_state.farm_id = None
    if "conversation_id" not in st.session_state:
        st.session_state.conversation_id = None

    # Initialize managers once
    if "profile_manager" not in st.session_state:
        llm = build_chat_model()
        chat_history_manager = ChatHistoryManager()
        st.session_state.profile_manager = ProfileManager()
        st.session_state.farm_manager = FarmManager()
        st.session_state.activity_manager = ActivityManager()
        st.session_state.finance_manager = FinanceManager()
        st.session_state.health_manager = CropHealthManager()
        st.session_state.chat_history_manager = chat_history_manager
        st.session_state.crop_doctor = CropDoctorAgent(llm)
        st.session_state.advisor = FarmAdvisorAgent(chat_history_manager, llm)

# --- Authentication Logic ---
def show_login_signup_page():
    """Displays the login and sign-up forms."""
    st.title("Welcome to Farm Ledger AI 🌾")

    login_tab, signup_tab = st.tabs(["Login", "Sign Up"])

    with login_tab:
        with st.form("login_form"):
            username = st.text_input("Username", key="login_username")
            password = st.text_input("Password", type="password", key="login_password")
            if st.form_submit_button("Login"):
                user = st.session_state.profile_manager.authenticate_user(username, password)
                if user:
                    st.session_state.logged_in = True
                    st.session_state.user_id = user.user_id
                    st.rerun()
                else:
                    st.error("Invalid username or password.")

    with signup_tab:
        with st.form("signup_form"):
            new_username = st.text_input("Choose a Username", key="signup_username")
            new_password = st.text_input("Choose a Password", type="password", key="signup_password")
            if st.form_submit_button("Sign Up"):
                try:
                    st.session_state.profile_manager.create_user(new_username, new_password)
                    st.success("Account created! Please login.")
                except ValueError as e:
                    st.error(e)

# --- Farm Setup ---
def show_farm_setup():
    st.header("Set up your farm")
    with st.form("farm_form"):
        farm_name = st.text_input("Farm name")
        land_size = st.number_input("Land size (acres)", min_value=0.1, value=1.0, step=0.1)
        district = st.text_input("District")
        village = st.text_input("Village")
        soil_type = st.selectbox("Soil type", ["", "clay", "loamy", "sandy", "laterite", "alluvial"])
        irrigation_type = st.selectbox("Irrigation", ["", "drip", "sprinkler", "flood", "rainfed"])
        crops = st.text_input("Primary crops (comma separated)")
        if st.form_submit_button("Create farm"):
            coordinates = get_coordinates_for_location(", ".join(p for p in (village, district) if p))
            location = FarmLocation(
                district=district,
                village=village,
                coordinates={"lat": coordinates["latitude"], "lng": coordinates["longitude"]} if coordinates else None,
            )
            try:
                farm = st.session_state.farm_manager.create_farm(
                    st.session_state.user_id, farm_name, land_size,
                    soil_type=soil_type, irrigation_type=irrigation_type,
                    primary_crops=crops, location=location,
                )
                st.session_state.farm_id = farm.id
                st.rerun()
            except (ValueError, ValidationError) as e:
                st.error(f"Validation failed: {e}")

# --- Pages ---
def show_dashboard(user_id: str, farm_id: str):
    stats = st.session_state.farm_manager.get_farm_stats(user_id, farm_id)
    summary = st.session_state.finance_manager.get_financial_summary(user_id, farm_id)
    health = st.session_state.health_manager.get_health_stats(user_id, farm_id)
    if stats is None:
        st.warning("Farm not found.")
        return

    cols = st.columns(4)
    cols[0].metric("Activities", stats.total_activities)
    cols[1].metric("Expenses this month", f"₹{stats.monthly_expenses:,.0f}")
    cols[2].metric("Net profit", f"₹{summary.net_profit:,.0f}", f"{summary.profit_margin:.1f}% margin")
    cols[3].metric("Healthy crops", f"{health.healthy_percentage:.0f}%")

    if summary.expenses_by_category:
        st.subheader("Expenses by category")
        st.bar_chart(pd.Series(summary.expenses_by_category, name="cost"))

    st.subheader("Recent activities")
    for activity in stats.recent_activities:
        st.write(f"**{activity.date}** · {activity.activity_type} · {activity.crop_name} · {activity.description}")

def show_activities(user_id: str, farm_id: str):
    manager = st.session_state.activity_manager
    with st.form("activity_form"):
        activity_type = st.selectbox("Activity", ACTIVITY_TYPES)
        crop_name = st.text_input("Crop")
        activity_date = st.date_input("Date", value=date.today())
        description = st.text_area("Description")
        if st.form_submit_button("Log activity"):
            try:
                manager.add_activity(user_id, farm_id, activity_type, crop_name, activity_date, description)
                st.success("Activity logged.")
            except (FarmLedgerError, ValidationError) as e:
                st.error(e)

    stats = manager.get_activity_stats(user_id, farm_id)
    if stats and stats.total_activities:
        st.bar_chart(pd.Series(stats.monthly_activity, name="activities").sort_index())
        st.dataframe(pd.DataFrame([a.model_dump(include={"date", "activity_type", "crop_name", "description"})
                                   for a in stats.recent_activities]))

def show_finances(user_id: str, farm_id: str):
    manager = st.session_state.finance_manager
    expense_col, sale_col = st.columns(2)
    with expense_col, st.form("expense_form"):
        st.subheader("Add expense")
        category = st.selectbox("Category", EXPENSE_CATEGORIES)
        item_name = st.text_input("Item")
        cost = st.number_input("Cost (₹)", min_value=0.0)
        expense_date = st.date_input("Date", value=date.today(), key="expense_date")
        if st.form_submit_button("Save expense"):
            try:
                manager.add_expense(user_id, farm_id, category, item_name, cost, expense_date)
                st.success("Expense saved.")
            except (FarmLedgerError, ValidationError) as e:
                st.error(e)

    with sale_col, st.form("sale_form"):
        st.subheader("Add sale")
        crop_name = st.text_input("Crop", key="sale_crop")
        quantity = st.number_input("Quantity", min_value=0.0)
        unit = st.text_input("Unit", value="kg")
        price = st.number_input("Price per unit (₹)", min_value=0.0)
        buyer = st.text_input("Buyer name")
        sale_date = st.date_input("Sale date", value=date.today(), key="sale_date")
        if st.form_submit_button("Save sale"):
            try:
                manager.add_sale(user_id, farm_id, crop_name, quantity, unit, price, sale_date,
                                 buyer_info=BuyerInfo(name=buyer) if buyer else None)
                st.success("Sale saved.")
            except (FarmLedgerError, ValidationError) as e:
                st.error(e)

    period = st.date_input("Period", value=(date.today().replace(day=1), date.today()))
    if len(period) != 2:
        return
    summary = manager.get_financial_summary(user_id, farm_id, *period)
    if summary:
        st.json(summary.model_dump(by_alias=True))

def show_crop_doctor(user_id: str, farm_id: str):
    doctor = st.session_state.crop_doctor
    with st.form("crop_doctor_form"):
        crop_name = st.text_input("Crop")
        symptoms = st.text_area("Symptoms")
        uploaded_file = st.file_uploader("Leaf photo", type=["jpg", "jpeg", "png"])
        status = st.selectbox("Crop status", HEALTH_STATUSES, index=HEALTH_STATUSES.index("diseased"))
        if st.form_submit_button("Diagnose"):
            try:
                if uploaded_file:
                    diagnosis = doctor.analyze_images(uploaded_file.getvalue(), crop_name, symptoms)
                else:
                    diagnosis = doctor.analyze_symptoms(crop_name, symptoms)
            except (ValueError, FarmLedgerError) as e:
                st.error(e)
                return
            st.session_state.health_manager.add_health_record(
                user_id, farm_id, crop_name, status, date.today(),
                ai_diagnosis=diagnosis, symptoms=symptoms,
            )
            st.subheader(f"{diagnosis.disease} ({diagnosis.confidence:.0%}, {diagnosis.severity})")
            st.write(diagnosis.description)
            st.json(diagnosis.treatments.model_dump())

    health = st.session_state.health_manager.get_health_stats(user_id, farm_id)
    if health and health.recent_issues:
        st.subheader("Open issues")
        for record in health.recent_issues:
            st.write(f"**{record.recorded_date}** · {record.crop_name} · {record.status}")
            new_status = st.selectbox("Update status", HEALTH_STATUSES, key=f"status_{record.id}",
                                      index=HEALTH_STATUSES.index(record.status))
            if new_status != record.status:
                st.session_state.health_manager.update_health_record_status(user_id, record.id, new_status)
                st.rerun()

def show_weather(farm):
    coordinates = farm.location.coordinates if farm.location else None
    if not coordinates:
        st.info("Add a district and village to your farm to see the forecast.")
        return
    try:
        report = fetch_weather_data(coordinates.lat, coordinates.lng)
    except FarmLedgerError as e:
        st.error(e)
        return
    st.text(format_forecast(report))

def show_advisor(user_id: str, farm):
    language = LANGUAGES[st.selectbox("Language", list(LANGUAGES))]
    history = st.session_state.chat_history_manager
    if st.button("➕ New conversation") or st.session_state.conversation_id is None:
        st.session_state.conversation_id = history.create_conversation(user_id, language, farm).id

    conversation = history.get_conversation(user_id, st.session_state.conversation_id)
    for message in conversation.messages:
        with st.chat_message("human" if message.role == "user" else "ai"):
            st.markdown(message.content)

    if prompt := st.chat_input("Ask about your crops..."):
        with st.spinner("Assistant is thinking..."):
            try:
                st.session_state.advisor.get_chat_response(user_id, conversation.id, prompt, language)
            except FarmLedgerError as e:
                st.error(e)
        st.rerun()

def show_main_interface():
    user_id = st.session_state.user_id
    farms = st.session_state.farm_manager.get_user_farms(user_id)

    with st.sidebar:
        st.header(f"Welcome, {user_id}!")
        if farms:
            names = {f.id: f.farm_name for f in farms}
            ids = list(names)
            current = st.session_state.farm_id if st.session_state.farm_id in names else ids[0]
            st.session_state.farm_id = st.selectbox("Farm", ids, index=ids.index(current), format_func=names.get)
        if st.button("Logout"):
            for key in list(st.session_state.keys()):
                del st.session_state[key]
            st.rerun()

    if not farms:
        show_farm_setup()
        return

    farm_id = st.session_state.farm_id
    farm = next(f for f in farms if f.id == farm_id)
    tabs = st.tabs(["Dashboard", "Activities", "Finances", "Crop Doctor", "Weather", "Advisor"])
    with tabs[0]:
        show_dashboard(user_id, farm_id)
    with tabs[1]:
        show_activities(user_id, farm_id)
    with tabs[2]:
        show_finances(user_id, farm_id)
    with tabs[3]:
        show_crop_doctor(user_id, farm_id)
    with tabs[4]:
        show_weather(farm)
    with tabs[5]:
        show_advisor(user_id, farm)


# --- Application Entry Point ---
initialize_session_state()

if st.session_state.logged_in:
    show_main_interface()
else:
    show_login_signup_page()
