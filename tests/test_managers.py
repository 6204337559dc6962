"""
Write-side operations: every change is checked against farm ownership first.
"""
import pytest
from pydantic import ValidationError

from core.exceptions import FarmAccessError, RecordAccessError
from core.models import ActivityMetadata, AIDiagnosis, BuyerInfo, FarmLocation


# =============================================================================
# FARMS
# =============================================================================

class TestFarmManager:

    def test_create_farm_splits_crop_string(self, farm):
        assert farm.primary_crops == ["rice", "banana"]
        assert farm.user_id == "ravi"
        assert farm.soil_type == "laterite"
        assert farm.irrigation_type is None

    def test_create_farm_validation(self, farm_manager):
        with pytest.raises(ValueError):
            farm_manager.create_farm("ravi", "Tiny", 0.05)
        with pytest.raises(ValidationError):
            farm_manager.create_farm("ravi", "ab", 1.0)

    def test_get_user_farms_only_returns_own(self, farm_manager, farm, other_farm):
        assert [f.id for f in farm_manager.get_user_farms("ravi")] == [farm.id]
        assert farm_manager.get_farm("ravi", other_farm.id) is None

    def test_update_farm_drops_none_values(self, farm_manager, farm):
        location = FarmLocation(district="Thrissur", village="Ollur")

        updated = farm_manager.update_farm("ravi", farm.id, farm_name="Green Acres East",
                                           soil_type=None, location=location)

        stored = farm_manager.get_farm("ravi", farm.id)
        assert updated.farm_name == stored.farm_name == "Green Acres East"
        assert stored.soil_type == "laterite"
        assert stored.location.label() == "Ollur, Thrissur"

    def test_update_foreign_farm_is_denied(self, farm_manager, other_farm):
        with pytest.raises(FarmAccessError, match="Farm not found or access denied"):
            farm_manager.update_farm("ravi", other_farm.id, farm_name="Mine now")
        assert farm_manager.get_farm("meera", other_farm.id).farm_name == "Hill Plot"

    def test_get_farm_stats(self, farm_manager, farm, other_farm):
        assert farm_manager.get_farm_stats("ravi", farm.id).total_activities == 0
        assert farm_manager.get_farm_stats("ravi", other_farm.id) is None


# =============================================================================
# ACTIVITIES
# =============================================================================

class TestActivityManager:

    def test_add_and_list(self, activity_manager, farm):
        activity = activity_manager.add_activity(
            "ravi", farm.id, "fertilizing", "banana", "2024-03-02", "Applied compost",
            metadata=ActivityMetadata(duration=2, area=0.5, materials=["compost"]),
        )

        listed = activity_manager.get_farm_activities("ravi", farm.id)

        assert [a.id for a in listed] == [activity.id]
        assert listed[0].metadata.materials == ["compost"]

    def test_add_to_foreign_farm_is_denied(self, activity_manager, other_farm):
        with pytest.raises(FarmAccessError):
            activity_manager.add_activity("ravi", other_farm.id, "sowing", "rice", "2024-03-01")

    def test_invalid_activity_type_is_rejected(self, activity_manager, farm):
        with pytest.raises(ValidationError):
            activity_manager.add_activity("ravi", farm.id, "dancing", "rice", "2024-03-01")

    def test_update_activity(self, activity_manager, farm):
        activity = activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-01")

        activity_manager.update_activity("ravi", activity.id, description="Second field", date=None)

        stored = activity_manager.get_farm_activities("ravi", farm.id)[0]
        assert stored.description == "Second field"
        assert stored.date == "2024-03-01"

    def test_update_rejects_unknown_fields(self, activity_manager, farm):
        activity = activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-01")
        with pytest.raises(ValueError):
            activity_manager.update_activity("ravi", activity.id, farm_id="elsewhere")

    def test_other_user_cannot_touch_activity(self, activity_manager, farm):
        activity = activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-01")

        with pytest.raises(RecordAccessError, match="Activity not found or access denied"):
            activity_manager.update_activity("meera", activity.id, description="hijacked")
        with pytest.raises(RecordAccessError):
            activity_manager.delete_activity("meera", activity.id)

    def test_delete_activity(self, activity_manager, farm):
        activity = activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-01")
        assert activity_manager.delete_activity("ravi", activity.id) == activity.id
        assert activity_manager.get_farm_activities("ravi", farm.id) == []

    def test_date_range_query(self, activity_manager, farm):
        for day in ("2024-02-28", "2024-03-01", "2024-03-31", "2024-04-01"):
            activity_manager.add_activity("ravi", farm.id, "irrigation", "rice", day)

        march = activity_manager.get_activities_by_date_range("ravi", farm.id, "2024-03-01", "2024-03-31")

        assert [a.date for a in march] == ["2024-03-31", "2024-03-01"]

    def test_activity_stats(self, activity_manager, farm, other_farm):
        activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-01")
        activity_manager.add_activity("ravi", farm.id, "sowing", "rice", "2024-03-15")
        activity_manager.add_activity("ravi", farm.id, "harvesting", "rice", "2024-04-02")

        stats = activity_manager.get_activity_stats("ravi", farm.id)

        assert stats.activity_counts == {"sowing": 2, "harvesting": 1}
        assert stats.monthly_activity == {"2024-03": 2, "2024-04": 1}
        assert activity_manager.get_activity_stats("ravi", other_farm.id) is None


# =============================================================================
# EXPENSES & SALES
# =============================================================================

class TestFinanceManager:

    def test_sale_total_defaults_to_quantity_times_price(self, finance_manager, farm):
        sale = finance_manager.add_sale("ravi", farm.id, "banana", 120, "kg", 35, "2024-03-12",
                                        buyer_info=BuyerInfo(name="Co-op", contact="9800000000"))
        assert sale.total_amount == 4200
        assert finance_manager.get_farm_sales("ravi", farm.id)[0].buyer_info.name == "Co-op"

    def test_explicit_sale_total_is_kept(self, finance_manager, farm):
        sale = finance_manager.add_sale("ravi", farm.id, "banana", 120, "kg", 35, "2024-03-12", total_amount=4000)
        assert sale.total_amount == 4000

    def test_negative_cost_is_rejected(self, finance_manager, farm):
        with pytest.raises(ValidationError):
            finance_manager.add_expense("ravi", farm.id, "seeds", "Seed", -5, "2024-03-01")

    def test_add_to_foreign_farm_is_denied(self, finance_manager, other_farm):
        with pytest.raises(FarmAccessError):
            finance_manager.add_expense("ravi", other_farm.id, "seeds", "Seed", 5, "2024-03-01")
        with pytest.raises(FarmAccessError):
            finance_manager.add_sale("ravi", other_farm.id, "rice", 1, "kg", 5, "2024-03-01")

    def test_financial_summary(self, finance_manager, farm):
        finance_manager.add_expense("ravi", farm.id, "seeds", "Paddy seed", 100, "2024-03-01")
        finance_manager.add_expense("ravi", farm.id, "labor", "Transplanting", 50, "2024-03-04")
        finance_manager.add_sale("ravi", farm.id, "rice", 10, "kg", 30, "2024-03-20")

        summary = finance_manager.get_financial_summary("ravi", farm.id)

        assert summary.model_dump(by_alias=True) == {
            "totalExpenses": 150,
            "totalRevenue": 300,
            "netProfit": 150,
            "profitMargin": 50,
            "expensesByCategory": {"seeds": 100, "labor": 50},
            "expenseCount": 2,
            "salesCount": 1,
        }

    def test_financial_summary_for_range(self, finance_manager, farm):
        finance_manager.add_expense("ravi", farm.id, "seeds", "Seed", 100, "2024-03-01")
        finance_manager.add_expense("ravi", farm.id, "seeds", "Seed", 100, "2024-03-31")
        finance_manager.add_expense("ravi", farm.id, "seeds", "Seed", 100, "2024-04-01")
        finance_manager.add_sale("ravi", farm.id, "rice", 1, "kg", 80, "2024-04-01")

        summary = finance_manager.get_financial_summary("ravi", farm.id, "2024-03-01", "2024-03-31")

        assert summary.total_expenses == 200
        assert summary.sales_count == 0
        assert summary.profit_margin == 0

    def test_expenses_by_date_range(self, finance_manager, farm, other_farm):
        for day in ("2024-02-29", "2024-03-01", "2024-03-31", "2024-04-01"):
            finance_manager.add_expense("ravi", farm.id, "labor", "Day labour", 100, day)
        finance_manager.add_expense("meera", other_farm.id, "labor", "Day labour", 100, "2024-03-10")

        march = finance_manager.get_expenses_by_date_range("ravi", farm.id, "2024-03-01", "2024-03-31")

        assert [e.date for e in march] == ["2024-03-31", "2024-03-01"]
        assert finance_manager.get_expenses_by_date_range("ravi", other_farm.id, "2024-03-01", "2024-03-31") == []

    def test_range_needs_both_bounds(self, finance_manager, farm):
        finance_manager.add_expense("ravi", farm.id, "seeds", "Seed", 100, "2023-01-01")
        summary = finance_manager.get_financial_summary("ravi", farm.id, start_date="2024-01-01")
        assert summary.expense_count == 1

    def test_summary_for_foreign_farm_is_none(self, finance_manager, other_farm):
        assert finance_manager.get_financial_summary("ravi", other_farm.id) is None


# =============================================================================
# CROP HEALTH
# =============================================================================

class TestCropHealthManager:

    def test_add_record_with_diagnosis(self, health_manager, farm):
        diagnosis = AIDiagnosis(disease="Leaf Spot Disease", confidence=0.85,
                                description="Brown spots", severity="medium")

        health_manager.add_health_record("ravi", farm.id, "banana", "diseased", "2024-03-01",
                                         image_urls=["leaf.jpg"], ai_diagnosis=diagnosis, symptoms="brown spots")

        stored = health_manager.get_farm_health_records("ravi", farm.id)[0]
        assert stored.ai_diagnosis.disease == "Leaf Spot Disease"
        assert stored.image_urls == ["leaf.jpg"]

    def test_diagnosis_saved_with_chosen_status(self, health_manager, farm):
        diagnosis = AIDiagnosis(disease="Powdery Mildew", confidence=0.78, description="White coating", severity="low")

        health_manager.add_health_record("ravi", farm.id, "rice", "treated", "2024-03-01", ai_diagnosis=diagnosis)

        stats = health_manager.get_health_stats("ravi", farm.id)
        assert stats.status_counts == {"treated": 1}
        assert stats.recent_issues[0].ai_diagnosis.disease == "Powdery Mildew"

    def test_update_status(self, health_manager, farm):
        record = health_manager.add_health_record("ravi", farm.id, "rice", "diseased", "2024-03-01")

        health_manager.update_health_record_status("ravi", record.id, "treated", "Copper spray")

        stored = health_manager.get_farm_health_records("ravi", farm.id)[0]
        assert stored.status == "treated"
        assert stored.treatment_applied == "Copper spray"

    def test_update_status_validates_before_writing(self, health_manager, farm):
        record = health_manager.add_health_record("ravi", farm.id, "rice", "diseased", "2024-03-01")
        with pytest.raises(ValidationError):
            health_manager.update_health_record_status("ravi", record.id, "dead")
        assert health_manager.get_farm_health_records("ravi", farm.id)[0].status == "diseased"

    def test_other_user_cannot_update(self, health_manager, farm):
        record = health_manager.add_health_record("ravi", farm.id, "rice", "diseased", "2024-03-01")
        with pytest.raises(RecordAccessError, match="Health record not found or access denied"):
            health_manager.update_health_record_status("meera", record.id, "recovered")

    def test_health_stats(self, health_manager, farm, other_farm):
        for status in ("healthy", "diseased", "recovered", "diseased"):
            health_manager.add_health_record("ravi", farm.id, "rice", status, "2024-03-01")

        stats = health_manager.get_health_stats("ravi", farm.id)

        assert stats.healthy_percentage == 50
        assert stats.crop_counts == {"rice": 4}
        assert len(stats.recent_issues) == 2
        assert health_manager.get_health_stats("ravi", other_farm.id) is None

    def test_records_by_crop(self, health_manager, farm):
        health_manager.add_health_record("ravi", farm.id, "rice", "healthy", "2024-03-01")
        health_manager.add_health_record("ravi", farm.id, "banana", "healthy", "2024-03-01")
        assert [r.crop_name for r in health_manager.get_health_records_by_crop("ravi", farm.id, "banana")] == ["banana"]


# =============================================================================
# USERS
# =============================================================================

class TestProfileManager:

    def test_create_and_authenticate(self, profile_manager):
        profile_manager.create_user("ravi", "s3cret", full_name="Ravi Kumar")

        assert profile_manager.authenticate_user("ravi", "s3cret").full_name == "Ravi Kumar"
        assert profile_manager.authenticate_user("ravi", "wrong") is None
        assert profile_manager.authenticate_user("nobody", "s3cret") is None

    def test_duplicate_user(self, profile_manager):
        profile_manager.create_user("ravi", "s3cret")
        with pytest.raises(ValueError, match="Username already exists"):
            profile_manager.create_user("ravi", "other")

    def test_save_profile(self, profile_manager):
        profile = profile_manager.load_profile("ravi")
        profile_manager.save_profile(profile.model_copy(update={"preferred_language": "ml"}))
        assert profile_manager.load_profile("ravi").preferred_language == "ml"
